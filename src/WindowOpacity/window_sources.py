"""
Window sources for KDE Plasma.

A window source enumerates the current windows and changes their opacity.
KWinScriptingSource talks to KWin by loading short-lived KWin scripts over
D-Bus and reading their output from the user journal. SimulationSource
reads windows from a text file and is used for development and tests.
"""
import json
import logging
import os
import subprocess
import tempfile
import time
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from .models import KWinWindow

logger = logging.getLogger(__name__)

DEFAULT_SIMULATION_FILE = "/tmp/window_opacity_fake_windows"


class WindowSourceError(Exception):
    """Raised when a window source cannot complete an operation."""


def run_command(cmd: list, timeout: float = 1.0) -> Optional[subprocess.CompletedProcess]:
    """Run cmd and return its result, or None if it timed out or could not start."""
    logger.debug(f"Running command: {' '.join(cmd)}")
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except subprocess.TimeoutExpired:
        logger.debug(f"Command {cmd[0]} timed out after {timeout}s")
        return None
    except OSError as e:
        logger.debug(f"Command {cmd[0]} failed: {e}")
        return None

    if result.returncode != 0:
        logger.debug(f"Command {cmd[0]} returned {result.returncode}: {result.stderr[:200]}")
    return result


def succeeded(result: Optional[subprocess.CompletedProcess]) -> bool:
    return result is not None and result.returncode == 0


class WindowSource(ABC):
    """
    Base class for window sources.

    A source that fails MAX_FAILURES times in a row marks itself
    unavailable; the window monitor stops polling it.
    """

    MAX_FAILURES = 3

    def __init__(self):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.is_available = True
        self.failures = 0
        self.last_error: Optional[str] = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name of this source."""

    @abstractmethod
    def enumerate_windows(self) -> List[KWinWindow]:
        """
        Return a snapshot of the current windows.

        :raises WindowSourceError: If the window list cannot be read
        """

    @abstractmethod
    def set_opacity(self, window: KWinWindow, opacity: float) -> None:
        """
        Set the opacity of a window.

        :raises WindowSourceError: If the window could not be changed
        """

    def record_result(self, error: Optional[str] = None) -> None:
        """Reset the failure streak, or extend it with error."""
        self.last_error = error
        if error is None:
            self.failures = 0
            return

        self.failures += 1
        if self.failures >= self.MAX_FAILURES and self.is_available:
            self.is_available = False
            self.logger.warning(f"Disabling window source '{self.name}' after {self.failures} failures: {error}")


ENUMERATE_SCRIPT = """
const windows = workspace.windowList ? workspace.windowList() : workspace.clientList();
print("{marker}:COUNT:" + windows.length);
for (let i = 0; i < windows.length; i++) {{
    const w = windows[i];
    print("{marker}:" + JSON.stringify({{
        id: String(w.internalId),
        resourceClass: w.resourceClass ? String(w.resourceClass) : null,
        resourceName: w.resourceName ? String(w.resourceName) : null,
        caption: w.caption ? String(w.caption) : null,
        normalWindow: !!w.normalWindow,
        fullScreen: !!w.fullScreen,
        opacity: w.opacity
    }}));
}}
print("{marker}:END");
"""

SET_OPACITY_SCRIPT = """
const windows = workspace.windowList ? workspace.windowList() : workspace.clientList();
for (let i = 0; i < windows.length; i++) {{
    if (String(windows[i].internalId) === {window_id}) {{
        windows[i].opacity = {opacity};
    }}
}}
"""

COUNT_PREFIX = "COUNT:"
END_PAYLOAD = "END"


class KWinScriptingSource(WindowSource):
    """
    Window source using dynamically loaded KWin scripts.

    Each operation writes a script to a temporary file, loads it through
    org.kde.kwin.Scripting, runs it and unloads it again. Script output is
    printed with a unique marker and read back from journalctl.

    The window list script prints a COUNT header before the windows and END
    after them. A listing is only accepted when the header is present and the
    number of window lines matches it, so a journal that dropped or rotated
    lines never yields a partial window list.
    """

    def __init__(self):
        super().__init__()
        self._qdbus_cmd = 'qdbus6'

    @property
    def name(self) -> str:
        return "kwin_scripting"

    def enumerate_windows(self) -> List[KWinWindow]:
        marker = self._new_marker("ENUM")
        payloads = self._run_script(ENUMERATE_SCRIPT.format(marker=marker), marker, wait_for=END_PAYLOAD)
        if payloads is None:
            error = "window list script produced no output"
        else:
            error, payloads = self._check_listing(payloads)

        self.record_result(error)
        if error:
            raise WindowSourceError(f"Could not enumerate windows: {error}")

        return [window for window in map(self._parse_window, payloads) if window]

    def set_opacity(self, window: KWinWindow, opacity: float) -> None:
        marker = self._new_marker("SET")
        script = SET_OPACITY_SCRIPT.format(
            window_id=json.dumps(window.window_id),
            opacity=round(float(opacity), 2)
        )
        error = None
        if self._run_script(script, marker, wait_for=None) is None:
            error = f"opacity script failed for {window.window_id}"

        self.record_result(error)
        if error:
            raise WindowSourceError(f"KWin rejected opacity change: {error}")

    @staticmethod
    def _new_marker(kind: str) -> str:
        return f"WINDOW_OPACITY_{kind}_{int(time.time() * 1000)}"

    @staticmethod
    def _check_listing(payloads: List[str]):
        """
        Split a window list into its window lines.

        :return: (error, window payloads); error is None for a complete listing
        """
        if not payloads or not payloads[0].startswith(COUNT_PREFIX):
            return "window list header missing from journal output", []

        try:
            expected = int(payloads[0][len(COUNT_PREFIX):])
        except ValueError:
            return f"invalid window count {payloads[0]!r}", []

        window_lines = [payload for payload in payloads[1:] if payload != END_PAYLOAD]
        if len(window_lines) != expected:
            return f"journal output has {len(window_lines)} of {expected} windows", []
        return None, window_lines

    def _parse_window(self, payload: str) -> Optional[KWinWindow]:
        try:
            data = json.loads(payload)
        except ValueError:
            self.logger.debug(f"Ignoring unparsable window line: {payload[:200]}")
            return None

        return KWinWindow(
            window_id=str(data.get('id', '')),
            resource_class=data.get('resourceClass') or None,
            resource_name=data.get('resourceName') or None,
            caption=data.get('caption') or None,
            normal_window=bool(data.get('normalWindow', False)),
            full_screen=bool(data.get('fullScreen', False)),
            opacity=float(data.get('opacity') if data.get('opacity') is not None else 1.0),
        )

    def _qdbus(self, *args, qdbus_cmd: Optional[str] = None, timeout: float = 1.0):
        return run_command([qdbus_cmd or self._qdbus_cmd, 'org.kde.KWin', *args], timeout=timeout)

    def _load_script(self, qdbus_cmd: str, path: str, plugin_name: str) -> Optional[str]:
        """Load a script file into KWin, returning its script id."""
        self._qdbus('/Scripting', 'org.kde.kwin.Scripting.unloadScript', plugin_name, qdbus_cmd=qdbus_cmd)
        res = self._qdbus('/Scripting', 'org.kde.kwin.Scripting.loadScript', path, plugin_name,
                          qdbus_cmd=qdbus_cmd, timeout=2.0)
        if succeeded(res):
            sid = res.stdout.strip()
            if sid != '-1' and sid.lstrip('-').isdigit():
                return sid
        return None

    def _run_script(self, script: str, marker: str, wait_for: Optional[str]) -> Optional[List[str]]:
        """
        Load, run and unload a KWin script.

        :param script: JavaScript source
        :param marker: Unique marker the script prefixes its output with
        :param wait_for: Payload that terminates the output; None to skip reading output
        :return: Output payloads in order, or None on failure
        """
        started = time.time()
        with tempfile.NamedTemporaryFile(mode='w', suffix='.js') as tf:
            tf.write(script)
            tf.flush()

            script_id = self._load_script(self._qdbus_cmd, tf.name, marker)
            if not script_id and self._qdbus_cmd == 'qdbus6':
                self._qdbus_cmd = 'qdbus'
                script_id = self._load_script(self._qdbus_cmd, tf.name, marker)

            if not script_id:
                self.logger.debug("Failed to load KWin script or invalid script id")
                return None

            script_path = f'/Scripting/Script{script_id}'
            run_result = self._qdbus(script_path, 'org.kde.kwin.Script.run', timeout=2.0)
            self._qdbus(script_path, 'org.kde.kwin.Script.stop', timeout=0.5)
            self._qdbus('/Scripting', 'org.kde.kwin.Scripting.unloadScript', marker, timeout=0.5)

        if not succeeded(run_result):
            return None
        if wait_for is None:
            return []
        return self._read_journal(marker, wait_for, since=started)

    def _read_journal(self, marker: str, wait_for: str, since: float) -> Optional[List[str]]:
        """Collect marker payloads logged since the script started, retrying briefly."""
        prefix = f"{marker}:"
        cmd = ['journalctl', '--user', '--since', f'@{int(since) - 1}', '--no-pager', '-o', 'cat']
        for wait in (0.05, 0.05, 0.10, 0.20):
            time.sleep(wait)

            journal_result = run_command(cmd, timeout=2.0)
            if journal_result is None:
                continue

            payloads = [
                line.split(prefix, 1)[1].strip()
                for line in journal_result.stdout.splitlines()
                if prefix in line
            ]
            if wait_for in payloads:
                return payloads

        self.logger.debug(f"Marker {marker} not found in journal after retries")
        return None


class SimulationSource(WindowSource):
    """
    Window source for simulation mode.

    Each non-empty line of the file describes one window:

        resourceClass|resourceName|caption[|flags]

    flags is a comma separated list of 'fullscreen' and 'special'
    (not a normal window). Lines starting with '#' are ignored.
    """

    def __init__(self, file_path: str = DEFAULT_SIMULATION_FILE):
        super().__init__()
        self.file_path = file_path
        self.opacities: Dict[str, float] = {}

    @property
    def name(self) -> str:
        return "simulation"

    def enumerate_windows(self) -> List[KWinWindow]:
        if not os.path.exists(self.file_path):
            return []

        try:
            with open(self.file_path, 'r') as f:
                lines = f.read().splitlines()
        except OSError as e:
            self.record_result(f"Error reading simulation file: {e}")
            raise WindowSourceError(str(e))

        windows = []
        seen: Dict[str, int] = {}
        for line in lines:
            line = line.strip()
            if not line or line.startswith('#'):
                continue

            count = seen.get(line, 0)
            seen[line] = count + 1
            window_id = f"{line}#{count}"

            windows.append(self._parse_line(window_id, line))

        self.record_result()
        return windows

    def set_opacity(self, window: KWinWindow, opacity: float) -> None:
        self.opacities[window.window_id] = opacity
        self.logger.info(f"Simulated opacity {opacity:.2f} for window {window.display_name()}")

    def _parse_line(self, window_id: str, line: str) -> KWinWindow:
        parts = [part.strip() for part in line.split('|')]
        parts += [''] * (4 - len(parts))
        resource_class, resource_name, caption, flags = parts[:4]
        flag_set = {flag.strip().lower() for flag in flags.split(',') if flag.strip()}

        return KWinWindow(
            window_id=window_id,
            resource_class=resource_class or None,
            resource_name=resource_name or None,
            caption=caption or None,
            normal_window='special' not in flag_set,
            full_screen='fullscreen' in flag_set,
            opacity=self.opacities.get(window_id, 1.0),
        )
