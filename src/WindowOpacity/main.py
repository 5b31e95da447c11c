#!/usr/bin/env python3
"""
WindowOpacity main application.

Usage:
    window-opacity [CONFIG] [--kwinrc] [--simulate[=FILE]] [--check-deps]

CONFIG defaults to config.yml next to this module. With --kwinrc the
settings are read from the [Script-windowopacity] section of kwinrc.
--simulate reads windows from FILE, or from the default simulation file
when no FILE is attached with '='. A separate argument after --simulate
is always the CONFIG.
"""
import logging
import os
import sys
import time

from WindowOpacity.config_loader import (ConfigLoader, ConfigValidationError,
                                         KWinRcConfigLoader, DEFAULT_KWINRC_PATH)
from WindowOpacity.dependency_check import DependencyChecker
from WindowOpacity.transparency import TransparencyController
from WindowOpacity.window_sources import (DEFAULT_SIMULATION_FILE, KWinScriptingSource,
                                          SimulationSource, WindowSourceError)


def main():
    """Main application entry point."""
    logging.basicConfig(level=logging.INFO)
    args = sys.argv[1:]

    if '--check-deps' in args:
        checker = DependencyChecker()
        checker.log_report()
        logging.info(checker.get_summary())
        sys.exit(1 if checker.has_critical_failures() else 0)

    simulation_file = None
    for arg in [arg for arg in args if arg == '--simulate' or arg.startswith('--simulate=')]:
        simulation_file = arg.partition('=')[2] or DEFAULT_SIMULATION_FILE
        args.remove(arg)

    use_kwinrc = '--kwinrc' in args
    positional = [arg for arg in args if not arg.startswith('--')]

    if use_kwinrc:
        config_loader = KWinRcConfigLoader(positional[0] if positional else DEFAULT_KWINRC_PATH)
    else:
        if positional:
            config_file = positional[0]
        else:
            # Use config.yml in the same directory as the script
            script_dir = os.path.dirname(os.path.abspath(__file__))
            config_file = os.path.join(script_dir, 'config.yml')
        config_loader = ConfigLoader(config_file)

    # Load configuration
    try:
        config_loader.load()
    except FileNotFoundError as e:
        logging.error(f"{e}")
        sys.exit(1)
    except ConfigValidationError as e:
        logging.error(f"Configuration Error: {e}")
        sys.exit(1)

    if config_loader.read_config('showDebugLogs', False):
        logging.getLogger().setLevel(logging.DEBUG)

    if simulation_file:
        logging.info(f"Running in SIMULATION MODE. Reading windows from {simulation_file}")
        source = SimulationSource(simulation_file)
    else:
        logging.info(DependencyChecker().get_summary())
        source = KWinScriptingSource()

    controller = TransparencyController(config_loader, source)

    try:
        controller.start()
    except WindowSourceError as e:
        logging.error(f"Could not read the window list: {e}")
        sys.exit(1)

    logging.info("WindowOpacity is running. Press Ctrl+C to exit.")
    try:
        while controller.monitor.running:
            time.sleep(1)
    except KeyboardInterrupt:
        logging.info("Shutting down...")
    finally:
        controller.stop()


if __name__ == "__main__":
    main()
