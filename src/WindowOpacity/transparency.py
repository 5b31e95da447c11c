"""
Transparency controller.

Applies the configured opacity to every existing window at startup and to
each window that appears afterwards, skipping excluded applications.
"""
import logging
from typing import List, Optional

from .config_loader import ConfigLoader
from .exclusion_matcher import ExclusionMatcher
from .models import KWinWindow, window_identity
from .opacity_policy import OpacityPolicy
from .pattern_cache import PatternCache
from .window_monitor import DEFAULT_POLL_INTERVAL, WindowMonitor
from .window_sources import WindowSource

logger = logging.getLogger(__name__)


class TransparencyController:
    """Wire configuration, exclusion matching and a window source together."""

    def __init__(self, config: ConfigLoader, source: WindowSource, monitor: Optional[WindowMonitor] = None):
        """
        :param config: Settings accessor providing read_config(key, default)
        :param source: Window source used to list and change windows
        :param monitor: WindowMonitor to register with (created if omitted)
        """
        self.config = config
        self.source = source
        self.cache = PatternCache(debug_logs=lambda: bool(self.config.read_config('showDebugLogs', False)))
        self.matcher = ExclusionMatcher(self._read_excluded_windows, self.cache)
        self.policy = OpacityPolicy(self.matcher)
        self.monitor = monitor or WindowMonitor(
            source,
            poll_interval=self.config.read_config('pollInterval', DEFAULT_POLL_INTERVAL)
        )
        self.monitor.add_window_appeared_callback(self.on_window_appeared)

    def _read_excluded_windows(self) -> str:
        return self.config.read_config('excludedWindows', "")

    def apply_to_window(self, window: KWinWindow) -> Optional[float]:
        """
        Apply the current opacity setting to a single window.

        :return: Applied opacity, or None if the window was skipped
        """
        raw_opacity = self.config.read_config('windowOpacityPercentage', 70)
        return self.policy.apply(window, raw_opacity, self.source.set_opacity)

    def apply_to_all(self) -> List[KWinWindow]:
        """
        Apply the current opacity setting to every known window.

        :return: The window snapshot that was processed
        """
        windows = self.source.enumerate_windows()
        applied = 0
        for window in windows:
            if self.apply_to_window(window) is not None:
                applied += 1

        logger.info(f"Applied opacity to {applied} of {len(windows)} windows")
        self.monitor.mark_known(windows)
        return windows

    def on_window_appeared(self, window: KWinWindow) -> None:
        """Handle a newly created window."""
        if self.config.read_config('showNewWindowNames', False):
            logger.info(f"New window: '{window_identity(window)}' (caption: {window.caption!r})")
        self.apply_to_window(window)

    def start(self) -> None:
        """Run the initial pass and start watching for new windows."""
        self.apply_to_all()
        self.monitor.start()

    def stop(self) -> None:
        self.monitor.stop()
