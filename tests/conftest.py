import os
import sys
from unittest.mock import MagicMock

import pytest

# Add src to python path so we can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../src')))

from WindowOpacity.models import KWinWindow  # noqa: E402

RESOURCES_DIR = os.path.join(os.path.dirname(__file__), 'resources')


@pytest.fixture
def resources_dir():
    """Directory holding test configuration files."""
    return RESOURCES_DIR


@pytest.fixture
def make_window():
    """Factory for KWinWindow instances with sensible defaults."""
    def _make(resource_class="Konsole", **kwargs):
        kwargs.setdefault('window_id', f"{resource_class}-1")
        return KWinWindow(resource_class=resource_class, **kwargs)
    return _make


@pytest.fixture
def mock_source():
    """Fixture that returns a mock window source."""
    source = MagicMock()
    source.name = "mock"
    source.is_available = True
    source.enumerate_windows.return_value = []
    return source
