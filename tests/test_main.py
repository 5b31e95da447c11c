import sys
from unittest.mock import patch

import pytest

from WindowOpacity import main as main_module


class TestMain:

    @pytest.fixture
    def config_path(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text(
            "window_opacity:\n"
            "  settings:\n"
            "    windowOpacityPercentage: 60\n"
            "    excludedWindows: \"{term}\"\n"
        )
        return str(path)

    def test_missing_config_exits(self, tmp_path):
        with patch.object(sys, 'argv', ['window-opacity', str(tmp_path / "missing.yml")]):
            with pytest.raises(SystemExit) as exc:
                main_module.main()
        assert exc.value.code == 1

    def test_invalid_config_exits(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("something_else: {}\n")
        with patch.object(sys, 'argv', ['window-opacity', str(path)]):
            with pytest.raises(SystemExit) as exc:
                main_module.main()
        assert exc.value.code == 1

    @patch('time.sleep', side_effect=KeyboardInterrupt)
    def test_simulation_run(self, mock_sleep, config_path, tmp_path):
        """Simulation mode applies opacity to existing windows and shuts down cleanly."""
        windows = tmp_path / "windows"
        windows.write_text("konsole\nxterm\n")

        with patch.object(sys, 'argv', ['window-opacity', config_path, f'--simulate={windows}']), \
                patch.object(main_module, 'SimulationSource', wraps=main_module.SimulationSource) as source_cls:
            main_module.main()

        source_cls.assert_called_once_with(str(windows))

    @patch('time.sleep', side_effect=KeyboardInterrupt)
    def test_simulate_does_not_consume_config_argument(self, mock_sleep, config_path, tmp_path):
        """The argument after a bare --simulate is the config file, not the window file."""
        default_windows = str(tmp_path / "default_windows")

        with patch.object(sys, 'argv', ['window-opacity', '--simulate', config_path]), \
                patch.object(main_module, 'DEFAULT_SIMULATION_FILE', default_windows), \
                patch.object(main_module, 'ConfigLoader', wraps=main_module.ConfigLoader) as loader_cls, \
                patch.object(main_module, 'SimulationSource', wraps=main_module.SimulationSource) as source_cls:
            main_module.main()

        loader_cls.assert_called_once_with(config_path)
        source_cls.assert_called_once_with(default_windows)

    @patch('WindowOpacity.main.DependencyChecker')
    def test_check_deps(self, mock_checker_cls):
        mock_checker_cls.return_value.has_critical_failures.return_value = False
        mock_checker_cls.return_value.get_summary.return_value = "Dependency Status: OK"

        with patch.object(sys, 'argv', ['window-opacity', '--check-deps']):
            with pytest.raises(SystemExit) as exc:
                main_module.main()

        assert exc.value.code == 0
        mock_checker_cls.return_value.log_report.assert_called_once()
