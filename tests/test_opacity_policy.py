import logging
from unittest.mock import MagicMock

import pytest

from WindowOpacity.exclusion_matcher import ExclusionMatcher
from WindowOpacity.opacity_policy import OpacityPolicy, clamp_opacity


@pytest.fixture
def policy():
    return OpacityPolicy(ExclusionMatcher(lambda: "[Firefox],{term}"))


class TestClampOpacity:

    @pytest.mark.parametrize("raw,expected", [
        (0, 0.30),
        (29, 0.30),
        (30, 0.30),
        (55, 0.55),
        (100, 1.00),
        (101, 1.00),
        (None, 0.70),
    ])
    def test_clamping(self, raw, expected):
        assert clamp_opacity(raw) == pytest.approx(expected)

    def test_default_without_argument(self):
        assert clamp_opacity() == pytest.approx(0.70)

    @pytest.mark.parametrize("raw", ["abc", True, [50]])
    def test_invalid_values_use_default(self, raw):
        assert clamp_opacity(raw) == pytest.approx(0.70)

    def test_numeric_strings_are_accepted(self):
        assert clamp_opacity("45") == pytest.approx(0.45)

    @pytest.mark.parametrize("raw", [float("nan"), float("inf"), float("-inf"), "nan", "inf"])
    def test_non_finite_values_use_default(self, raw):
        assert clamp_opacity(raw) == pytest.approx(0.70)


class TestOpacityPolicy:

    def test_normal_window_gets_opacity(self, policy, make_window):
        assert policy.desired_opacity(make_window("Konsole"), 80) == pytest.approx(0.80)

    def test_non_normal_window_skipped(self, policy, make_window):
        window = make_window("plasmashell", normal_window=False)
        assert policy.desired_opacity(window, 80) is None

    def test_full_screen_window_skipped(self, policy, make_window):
        window = make_window("mpv", full_screen=True)
        assert policy.desired_opacity(window, 80) is None

    def test_excluded_window_skipped(self, policy, make_window):
        assert policy.desired_opacity(make_window("Firefox"), 80) is None
        assert policy.desired_opacity(make_window("xterm"), 80) is None

    def test_missing_window_skipped(self, policy):
        assert policy.desired_opacity(None, 80) is None

    def test_apply_calls_setter(self, policy, make_window):
        window = make_window("Konsole")
        setter = MagicMock()

        assert policy.apply(window, 50, setter) == pytest.approx(0.50)
        setter.assert_called_once_with(window, pytest.approx(0.50))
        assert window.opacity == pytest.approx(0.50)

    def test_apply_with_nan_opacity_stays_in_range(self, policy, make_window):
        window = make_window("Konsole")
        setter = MagicMock()

        assert policy.apply(window, float("nan"), setter) == pytest.approx(0.70)
        applied = setter.call_args.args[1]
        assert 0.30 <= applied <= 1.0

    def test_apply_skips_without_calling_setter(self, policy, make_window):
        setter = MagicMock()
        assert policy.apply(make_window("Firefox"), 50, setter) is None
        setter.assert_not_called()

    def test_setter_failure_is_logged_not_raised(self, policy, make_window, caplog):
        """A rejected opacity change leaves the window untouched."""
        window = make_window("Konsole")
        setter = MagicMock(side_effect=RuntimeError("window destroyed"))

        with caplog.at_level(logging.ERROR, logger="WindowOpacity.opacity_policy"):
            assert policy.apply(window, 50, setter) is None

        assert window.opacity == 1.0
        assert "Error setting opacity for window Konsole: window destroyed" in caplog.text

    def test_setter_failure_without_class(self, policy, caplog):
        from WindowOpacity.models import KWinWindow
        window = KWinWindow("42", caption="Untitled")
        setter = MagicMock(side_effect=RuntimeError("gone"))

        with caplog.at_level(logging.ERROR, logger="WindowOpacity.opacity_policy"):
            policy.apply(window, 50, setter)

        assert "<unknown>" in caplog.text
