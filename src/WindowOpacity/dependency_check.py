"""
Dependency checking and reporting for WindowOpacity.
Checks for both system binaries and Python packages.
"""
import importlib
import importlib.util
import logging
import shutil
from dataclasses import dataclass
from typing import List, Optional

logger = logging.getLogger(__name__)


@dataclass
class Dependency:
    name: str
    category: str  # "Required", "Optional", "System Tool"
    description: str
    display_name: Optional[str] = None
    installed: bool = False
    version: Optional[str] = None
    feature: Optional[str] = None


class DependencyChecker:
    """Checks for system and Python dependencies."""

    def __init__(self):
        self.system_tools = [
            Dependency("qdbus6", "System Tool", "Qt6 D-Bus communication", feature="Plasma 6 support"),
            Dependency("qdbus", "System Tool", "Qt D-Bus communication", feature="Plasma 5 support"),
            Dependency("journalctl", "System Tool", "Systemd journal access", feature="KWin script output"),
        ]

        self.python_packages = [
            Dependency("yaml", "Required", "YAML configuration parsing", display_name="PyYAML"),
        ]

    def _check_system_tool(self, dep: Dependency) -> bool:
        """Check if a system tool is in PATH."""
        return shutil.which(dep.name) is not None

    def _check_python_package(self, dep: Dependency) -> bool:
        """Check if a Python package is installed."""
        try:
            spec = importlib.util.find_spec(dep.name)
        except (ImportError, ValueError):
            return False
        if spec is None:
            return False

        try:
            module = importlib.import_module(dep.name)
            dep.version = getattr(module, '__version__', 'unknown')
        except ImportError:
            return False
        return True

    def run_check(self) -> List[Dependency]:
        """Run all checks and return the results."""
        results = []

        for dep in self.python_packages:
            dep.installed = self._check_python_package(dep)
            results.append(dep)

        for dep in self.system_tools:
            dep.installed = self._check_system_tool(dep)
            results.append(dep)

        return results

    def has_kwin_tools(self, results: Optional[List[Dependency]] = None) -> bool:
        """KWin scripting needs one qdbus variant and journalctl."""
        results = results if results is not None else self.run_check()
        installed = {dep.name for dep in results if dep.installed}
        return bool(installed & {"qdbus6", "qdbus"}) and "journalctl" in installed

    def log_report(self) -> None:
        """Log a report of every dependency."""
        results = self.run_check()

        for dep in results:
            name_to_show = dep.display_name or dep.name
            if dep.installed:
                version_str = f" (v{dep.version})" if dep.version and dep.version != 'unknown' else ""
                logger.info(f"Found {name_to_show}{version_str}: {dep.description}")
            elif dep.category == "Required":
                logger.error(f"Missing {name_to_show}: {dep.description}")
            else:
                logger.warning(f"Missing {name_to_show}: {dep.feature} will be disabled")

        if not self.has_kwin_tools(results):
            logger.warning("KWin scripting unavailable. Install qdbus (qt6-tools) and systemd, or use --simulate")

    def has_critical_failures(self) -> bool:
        """Check if any required dependencies are missing."""
        results = self.run_check()
        return any(not dep.installed for dep in results if dep.category == "Required")

    def get_summary(self) -> str:
        """Return a concise summary string of the check."""
        results = self.run_check()
        python_ok = all(d.installed for d in results if d.category == "Required")
        sys_tools = [d for d in results if d.category == "System Tool"]
        found_tools = sum(1 for d in sys_tools if d.installed)

        status = "OK" if python_ok and self.has_kwin_tools(results) else "DEGRADED"
        return f"Dependency Status: {status} (Python: {'OK' if python_ok else 'Missing Required'}, System Tools: {found_tools}/{len(sys_tools)} found)"
