"""
Configuration loader for window opacity settings.

Settings are read either from a YAML file or from the script section of
KWin's kwinrc. Both expose the same read_config(key, default) accessor.

Expected YAML structure:
window_opacity:
  settings:
    windowOpacityPercentage: 70      # Opacity in percent, clamped to 30-100, default: 70
    excludedWindows: "[Firefox],{term},konsole"   # default: ""
    showNewWindowNames: false        # Log the identity of every new window, default: false
    showDebugLogs: false             # Log exclusion list errors visibly, default: false
    pollInterval: 2.0                # Seconds between window list polls, default: 2.0

Expected kwinrc structure:
[Script-windowopacity]
windowOpacityPercentage=70
excludedWindows=[Firefox],{term}
"""
import configparser
import logging
import math
import os

import yaml

DEFAULT_SETTINGS = {
    'windowOpacityPercentage': 70,
    'excludedWindows': "",
    'showNewWindowNames': False,
    'showDebugLogs': False,
    'pollInterval': 2.0,
}

DEFAULT_KWINRC_PATH = os.path.expanduser("~/.config/kwinrc")
DEFAULT_SCRIPT_NAME = "windowopacity"


class ConfigValidationError(Exception):
    """Exception raised when configuration validation fails."""


class ConfigLoader:
    """Load, validate and re-read window opacity settings from a YAML file."""

    ROOT_ELEMENT = 'window_opacity'

    def __init__(self, config_path):
        """
        Initialize the configuration loader.

        :param config_path: Path to the configuration file
        """
        self.config_path = config_path
        self.settings = dict(DEFAULT_SETTINGS)
        self._mtime = None
        self.logger = logging.getLogger(__name__)

    def load(self):
        """
        Load and validate the configuration file.

        :raises ConfigValidationError: If configuration is invalid
        :raises FileNotFoundError: If config file doesn't exist
        """
        if not os.path.exists(self.config_path):
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        mtime = os.path.getmtime(self.config_path)
        raw_settings = self._read_settings()
        self.settings = self._validate_settings(raw_settings)
        self._mtime = mtime

    def reload_if_changed(self):
        """
        Reload the file if it changed since the last load.

        Errors are logged and the previously loaded settings are kept.
        """
        try:
            mtime = os.path.getmtime(self.config_path)
        except OSError as e:
            self.logger.warning(f"Cannot stat configuration file {self.config_path}: {e}")
            return

        if mtime == self._mtime:
            return

        try:
            self.load()
            self.logger.debug(f"Reloaded configuration from {self.config_path}")
        except (FileNotFoundError, ConfigValidationError) as e:
            self.logger.warning(f"Keeping previous configuration: {e}")

    def read_config(self, key, default=None):
        """
        Read a single setting, re-reading the file if it changed.

        :param key: Setting name (e.g. 'excludedWindows')
        :param default: Value returned if the setting is unset
        :return: The setting value or default
        """
        self.reload_if_changed()
        value = self.settings.get(key)
        return default if value is None else value

    def _read_settings(self):
        """Read the raw settings dictionary from the YAML file."""
        try:
            with open(self.config_path, 'r') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigValidationError(f"Invalid YAML in {self.config_path}: {e}")

        if not config:
            raise ConfigValidationError("Configuration file is empty")

        if not isinstance(config, dict) or self.ROOT_ELEMENT not in config:
            raise ConfigValidationError(f"Configuration must contain '{self.ROOT_ELEMENT}' root element")

        root = config[self.ROOT_ELEMENT] or {}
        if not isinstance(root, dict):
            raise ConfigValidationError(f"'{self.ROOT_ELEMENT}' must be a dictionary")

        settings = root.get('settings', {})
        if settings is None:
            settings = {}
        if not isinstance(settings, dict):
            raise ConfigValidationError("'settings' must be a dictionary")

        return settings

    def _validate_settings(self, settings):
        """
        Validate settings and merge them over the defaults.

        :raises ConfigValidationError: If a setting has the wrong type
        """
        validated = dict(DEFAULT_SETTINGS)

        for key in settings:
            if key not in DEFAULT_SETTINGS:
                self.logger.warning(f"Ignoring unknown setting '{key}'")

        if 'windowOpacityPercentage' in settings:
            opacity = settings['windowOpacityPercentage']
            if isinstance(opacity, bool) or not isinstance(opacity, (int, float)) or not math.isfinite(opacity):
                raise ConfigValidationError("windowOpacityPercentage must be a finite number")
            validated['windowOpacityPercentage'] = opacity

        if 'excludedWindows' in settings:
            excluded = settings['excludedWindows']
            if excluded is None:
                excluded = ""
            if not isinstance(excluded, str):
                raise ConfigValidationError("excludedWindows must be a string")
            validated['excludedWindows'] = excluded

        for flag in ('showNewWindowNames', 'showDebugLogs'):
            if flag in settings:
                if not isinstance(settings[flag], bool):
                    raise ConfigValidationError(f"{flag} must be true or false")
                validated[flag] = settings[flag]

        if 'pollInterval' in settings:
            interval = settings['pollInterval']
            if (isinstance(interval, bool) or not isinstance(interval, (int, float))
                    or not math.isfinite(interval) or interval < 0.1 or interval > 30.0):
                raise ConfigValidationError("pollInterval must be a number between 0.1 and 30.0 (seconds)")
            validated['pollInterval'] = float(interval)

        return validated


class KWinRcConfigLoader(ConfigLoader):
    """
    Read settings from the [Script-<name>] section of kwinrc.

    KWin writes this section when the script is configured through System
    Settings. A missing section means every setting is at its default.
    """

    def __init__(self, config_path=DEFAULT_KWINRC_PATH, script_name=DEFAULT_SCRIPT_NAME):
        super().__init__(config_path)
        self.section = f"Script-{script_name}"

    def _read_settings(self):
        parser = configparser.ConfigParser(interpolation=None, strict=False)
        parser.optionxform = str  # keys are case sensitive
        try:
            parser.read(self.config_path)
        except configparser.Error as e:
            raise ConfigValidationError(f"Invalid kwinrc {self.config_path}: {e}")

        if self.section not in parser:
            self.logger.debug(f"No [{self.section}] section in {self.config_path}, using defaults")
            return {}

        return {
            key: self._convert(key, value)
            for key, value in parser[self.section].items()
        }

    @staticmethod
    def _convert(key, value):
        """Convert a kwinrc string to the type of the matching default."""
        default = DEFAULT_SETTINGS.get(key)
        if isinstance(default, bool):
            lowered = value.strip().lower()
            if lowered in ('true', '1', 'yes', 'on'):
                return True
            if lowered in ('false', '0', 'no', 'off'):
                return False
            raise ConfigValidationError(f"{key} must be true or false")
        if isinstance(default, (int, float)):
            try:
                return float(value) if '.' in value else int(value)
            except ValueError:
                raise ConfigValidationError(f"{key} must be a number")
        return value
