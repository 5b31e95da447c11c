"""
Window monitoring: report windows that appear after startup.
"""
import logging
import threading
from typing import Callable, Iterable, List, Optional, Set

from .models import KWinWindow
from .window_sources import WindowSource, WindowSourceError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 2.0


class WindowMonitor:
    """
    Poll a window source and trigger callbacks once per newly appeared window.

    Callbacks are invoked one at a time from the monitor thread.
    """

    def __init__(self, source: WindowSource, poll_interval: float = DEFAULT_POLL_INTERVAL):
        """
        Initialize the window monitor.

        :param source: Window source to poll
        :param poll_interval: How often to check for new windows (in seconds)
        """
        self.source = source
        self.poll_interval: float = poll_interval
        self.known_window_ids: Set[str] = set()
        self.window_appeared_callbacks: List[Callable[[KWinWindow], None]] = []
        self.running: bool = False
        self.monitor_thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    def add_window_appeared_callback(self, callback: Callable[[KWinWindow], None]) -> None:
        """
        Register a callback for new windows.

        :param callback: Function called with each new KWinWindow
        """
        self.window_appeared_callbacks.append(callback)

    def mark_known(self, windows: Iterable[KWinWindow]) -> None:
        """Record windows that already exist so they are not reported as new."""
        self.known_window_ids.update(window.window_id for window in windows)

    def poll_once(self) -> List[KWinWindow]:
        """
        Fetch the window list once and dispatch callbacks for new windows.

        :return: Windows that appeared since the previous poll
        :raises WindowSourceError: If the source cannot list windows
        """
        windows = self.source.enumerate_windows()
        current_ids = {window.window_id for window in windows}
        new_windows = [window for window in windows if window.window_id not in self.known_window_ids]

        # Closed windows are forgotten so a reused id counts as new
        self.known_window_ids = current_ids

        for window in new_windows:
            self._dispatch(window)

        return new_windows

    def _dispatch(self, window: KWinWindow) -> None:
        for callback in self.window_appeared_callbacks:
            try:
                callback(window)
            except Exception:
                logger.exception(f"Error executing window appeared callback for {window.display_name()}")

    def _monitor_loop(self):
        """
        Main monitoring loop that runs in a separate thread.
        """
        while self.running:
            try:
                self.poll_once()
            except WindowSourceError as e:
                logger.warning(f"Window source '{self.source.name}' failed: {e}")
            except Exception:
                logger.exception("Error in window monitor")

            if not self.source.is_available:
                logger.error(f"Window source '{self.source.name}' disabled, stopping monitor")
                self.running = False
                break

            self._stop_event.wait(self.poll_interval)

    def start(self):
        """
        Start monitoring in a background thread.
        """
        if self.running:
            return

        self.running = True
        self._stop_event.clear()
        self.monitor_thread = threading.Thread(target=self._monitor_loop, daemon=True)
        self.monitor_thread.start()

    def stop(self):
        """
        Stop monitoring.
        """
        if not self.running:
            return

        self.running = False
        self._stop_event.set()
        if self.monitor_thread:
            self.monitor_thread.join(timeout=2)
