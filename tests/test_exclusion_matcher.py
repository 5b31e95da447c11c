from unittest.mock import MagicMock

import pytest

from WindowOpacity.exclusion_matcher import ExclusionMatcher
from WindowOpacity.models import KWinWindow, window_identity
from WindowOpacity.pattern_cache import PatternCache


@pytest.fixture
def matcher():
    return ExclusionMatcher(lambda: "[Firefox],{term},konsole")


class TestExclusionMatcher:

    def test_exact_match_is_case_insensitive(self, matcher, make_window):
        """A window class differing only in case from a pattern is excluded."""
        window = make_window("Konsole")
        assert matcher.is_excluded(window_identity(window)) is True

    def test_bracketed_exact_match(self, matcher):
        assert matcher.is_excluded("firefox") is True
        assert matcher.is_excluded("FIREFOX") is True

    def test_exact_requires_full_equality(self, matcher):
        assert matcher.is_excluded("firefox-esr") is False
        assert matcher.is_excluded("konsole2") is False

    def test_contains_match(self, matcher):
        assert matcher.is_excluded("xterm") is True
        assert matcher.is_excluded("gnome-terminal-server") is True

    def test_no_match(self, matcher):
        assert matcher.is_excluded("dolphin") is False

    def test_empty_identity_never_excluded(self):
        """Empty identities short-circuit before reading configuration."""
        reader = MagicMock(return_value="{}")
        matcher = ExclusionMatcher(reader)

        assert matcher.is_excluded("") is False
        reader.assert_not_called()

    def test_invalid_list_excludes_nothing(self):
        matcher = ExclusionMatcher(lambda: "firefox,a[b")
        assert matcher.is_excluded("firefox") is False

    def test_configuration_is_read_on_every_call(self):
        """A changed exclusion list is picked up by the next check."""
        reader = MagicMock(side_effect=["firefox", "firefox", "kate"])
        cache = PatternCache()
        matcher = ExclusionMatcher(reader, cache)

        assert matcher.is_excluded("firefox") is True
        assert matcher.is_excluded("firefox") is True
        assert matcher.is_excluded("firefox") is False
        assert reader.call_count == 3
        assert cache.parse_count == 2


class TestWindowIdentity:

    def test_resource_class_first(self):
        window = KWinWindow("1", resource_class="Firefox", resource_name="Navigator", caption="Tab")
        assert window_identity(window) == "firefox"

    def test_resource_name_second(self):
        window = KWinWindow("1", resource_name="Navigator", caption="Tab")
        assert window_identity(window) == "navigator"

    def test_caption_last(self):
        window = KWinWindow("1", resource_class="", caption="New Tab")
        assert window_identity(window) == "new tab"

    def test_empty_identity(self):
        assert window_identity(KWinWindow("1")) == ""
