"""
Opacity policy: decide which opacity a window gets, if any.
"""
import logging
import math
from typing import Callable, Optional

from .exclusion_matcher import ExclusionMatcher
from .models import KWinWindow, window_identity

logger = logging.getLogger(__name__)

DEFAULT_OPACITY_PERCENTAGE = 70
MIN_OPACITY_PERCENTAGE = 30
MAX_OPACITY_PERCENTAGE = 100


def clamp_opacity(raw_percentage=None) -> float:
    """
    Convert a configured percentage into an opacity fraction.

    :param raw_percentage: User value in percent; None, non-numeric or non-finite uses the default
    :return: Opacity between 0.30 and 1.00
    """
    if raw_percentage is None or isinstance(raw_percentage, bool):
        raw_percentage = DEFAULT_OPACITY_PERCENTAGE
    try:
        value = float(raw_percentage)
    except (TypeError, ValueError):
        logger.debug(f"Invalid opacity percentage {raw_percentage!r}, using default")
        value = DEFAULT_OPACITY_PERCENTAGE

    if not math.isfinite(value):
        logger.debug(f"Non-finite opacity percentage {raw_percentage!r}, using default")
        value = DEFAULT_OPACITY_PERCENTAGE

    value = min(max(value, MIN_OPACITY_PERCENTAGE), MAX_OPACITY_PERCENTAGE)
    return value / 100


class OpacityPolicy:
    """Combine window eligibility, exclusions and the user opacity setting."""

    def __init__(self, matcher: ExclusionMatcher):
        self.matcher = matcher

    def is_eligible(self, window: KWinWindow) -> bool:
        """Only normal, non full-screen windows are touched."""
        return bool(window) and window.normal_window and not window.full_screen

    def desired_opacity(self, window: KWinWindow, raw_opacity=None) -> Optional[float]:
        """
        Compute the opacity for a window.

        :param window: Window to check
        :param raw_opacity: Configured opacity percentage
        :return: Opacity fraction, or None if the window must be skipped
        """
        if not self.is_eligible(window):
            return None
        if self.matcher.is_excluded(window_identity(window)):
            return None
        return clamp_opacity(raw_opacity)

    def apply(
        self,
        window: KWinWindow,
        raw_opacity,
        setter: Callable[[KWinWindow, float], None]
    ) -> Optional[float]:
        """
        Apply the desired opacity through setter.

        Failures from setter are logged and swallowed; the window keeps
        its previous opacity.

        :return: The applied opacity, or None if skipped or failed
        """
        opacity = self.desired_opacity(window, raw_opacity)
        if opacity is None:
            return None

        try:
            setter(window, opacity)
        except Exception as e:
            logger.error(f"Error setting opacity for window {window.resource_class or '<unknown>'}: {e}")
            return None

        window.opacity = opacity
        return opacity
