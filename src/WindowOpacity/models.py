"""
Data models for window opacity management.

This module contains dataclass definitions shared by the window sources,
the exclusion matcher and the opacity policy.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class KWinWindow:
    """
    Snapshot of a KWin window as seen by a window source.

    Attributes:
        window_id: Stable identifier (KWin internalId or simulation line key)
        resource_class: Window class (WM_CLASS / app id)
        resource_name: Resource name
        caption: Window title
        normal_window: Whether KWin reports the window as a normal window
        full_screen: Whether the window is full-screen
        opacity: Current opacity (0.0 - 1.0)
    """
    window_id: str
    resource_class: Optional[str] = None
    resource_name: Optional[str] = None
    caption: Optional[str] = None
    normal_window: bool = True
    full_screen: bool = False
    opacity: float = 1.0

    def display_name(self) -> str:
        """Name used in log lines."""
        return self.resource_class or self.resource_name or self.caption or "<unknown>"


def window_identity(window: KWinWindow) -> str:
    """
    Return the lower-cased string used to match a window against exclusions.

    Priority: resource class, then resource name, then caption.
    """
    for candidate in (window.resource_class, window.resource_name, window.caption):
        if candidate:
            return candidate.lower()
    return ""
