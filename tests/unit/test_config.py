"""
Unit tests for configuration loading and logging setup.
"""

import logging
from pathlib import Path

import pytest

from volforecast.utils import (
    ConfigError,
    FitConfig,
    LoggingConfig,
    PredictionConfig,
    Settings,
    ValidationError,
    load_config,
    load_settings,
    setup_logging,
    validate_config,
    validate_numeric_range,
)

REPO_CONFIG = Path(__file__).resolve().parents[2] / 'config.yaml'


class TestLoadSettings:
    """Tests for load_settings function."""

    def test_defaults_without_file(self):
        """Test None gives pure defaults."""
        settings = load_settings()

        assert settings == Settings()
        assert settings.fit.penalty == 1e10
        assert settings.fit.variance_floor == 1e-12
        assert settings.prediction.confidence == 0.6827

    def test_repo_config_matches_defaults(self):
        """Test the shipped config.yaml mirrors the dataclass defaults."""
        settings = load_settings(str(REPO_CONFIG))

        assert settings.fit == FitConfig()
        assert settings.prediction == PredictionConfig()
        assert settings.logging == LoggingConfig()

    def test_partial_override(self, tmp_path):
        """Test absent keys keep their defaults."""
        path = tmp_path / 'config.yaml'
        path.write_text("fit:\n  max_iter: 200\n  df_bounds: [3.0, 50.0]\n")

        settings = load_settings(str(path))

        assert settings.fit.max_iter == 200
        assert settings.fit.df_bounds == (3.0, 50.0)
        assert settings.fit.tol == 1e-8
        assert settings.prediction == PredictionConfig()

    def test_unknown_key(self, tmp_path):
        """Test unknown keys are rejected."""
        path = tmp_path / 'config.yaml'
        path.write_text("prediction:\n  confidance: 0.9\n")

        with pytest.raises(ConfigError, match="Unknown keys in config section .prediction."):
            load_settings(str(path))

    def test_unknown_section(self, tmp_path):
        """Test unknown top-level sections are rejected."""
        path = tmp_path / 'config.yaml'
        path.write_text("plots:\n  dpi: 300\n")

        with pytest.raises(ConfigError, match=r"Unknown keys in config file: \[.plots.\]"):
            load_settings(str(path))

    def test_section_must_be_mapping(self, tmp_path):
        """Test a scalar section is rejected."""
        path = tmp_path / 'config.yaml'
        path.write_text("fit: 3\n")

        with pytest.raises(ConfigError, match="must be a mapping"):
            load_settings(str(path))


class TestLoadConfig:
    """Tests for load_config function."""

    def test_missing_file(self, tmp_path):
        """Test error for a missing file."""
        with pytest.raises(ConfigError, match="not found"):
            load_config(str(tmp_path / 'missing.yaml'))

    def test_malformed_yaml(self, tmp_path):
        """Test error for unparsable YAML."""
        path = tmp_path / 'bad.yaml'
        path.write_text("fit: [unclosed\n")

        with pytest.raises(ConfigError, match="Failed to parse"):
            load_config(str(path))

    def test_empty_file(self, tmp_path):
        """Test an empty file loads as an empty mapping."""
        path = tmp_path / 'empty.yaml'
        path.write_text("")

        assert load_config(str(path)) == {}

    def test_validate_config(self):
        """Test unknown keys are named with their section."""
        validate_config({'fit': {}}, ['fit', 'prediction'])
        with pytest.raises(ConfigError, match=r"config section 'fit': \['max_iters'\]"):
            validate_config({'max_iters': 5}, ['max_iter', 'tol'], 'fit')

    def test_top_level_must_be_mapping(self, tmp_path):
        """Test a YAML list at the top level is rejected."""
        path = tmp_path / 'config.yaml'
        path.write_text("- fit\n- prediction\n")

        with pytest.raises(ConfigError, match="The config file must be a mapping"):
            load_settings(str(path))


class TestFitConfig:
    """Tests for FitConfig overrides."""

    def test_with_overrides(self):
        """Test per-call overrides return a modified copy."""
        base = FitConfig()
        changed = base.with_overrides(max_iter=50)

        assert changed.max_iter == 50
        assert changed.tol == base.tol
        assert base.max_iter == 1000

    def test_no_overrides_returns_self(self):
        """Test no-op overrides keep the same instance."""
        base = FitConfig()
        assert base.with_overrides() is base


class TestValidateNumericRange:
    """Tests for validate_numeric_range function."""

    def test_within_range(self):
        assert validate_numeric_range(0.75, 0.0, 1.0) == 0.75

    def test_outside_range(self):
        with pytest.raises(ValidationError, match="ratio must be between"):
            validate_numeric_range(1.5, 0.0, 1.0, 'ratio')


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_file_handler(self, tmp_path):
        """Test messages from submodules reach the log file."""
        log_file = tmp_path / 'logs' / 'volforecast.log'
        logger = setup_logging(log_file=str(log_file), log_level='DEBUG', console=False)

        logging.getLogger('volforecast.models.garch').debug("fit finished")
        for handler in logger.handlers:
            handler.flush()

        content = log_file.read_text()
        assert 'DEBUG: fit finished' in content
        setup_logging(console=False)

    def test_no_duplicate_handlers(self):
        """Test repeated setup does not stack handlers."""
        setup_logging(console=True)
        logger = setup_logging(console=True)

        assert len(logger.handlers) == 1
        setup_logging(console=False)

    def test_file_keeps_debug_below_console_level(self, tmp_path):
        """Test the file handler records DEBUG while the console stays at INFO."""
        log_file = tmp_path / 'volforecast.log'
        logger = setup_logging(log_file=str(log_file), console=True)

        logging.getLogger('volforecast.prediction.selection').debug("Selected garch")
        for handler in logger.handlers:
            handler.flush()

        levels = sorted(handler.level for handler in logger.handlers)
        assert levels == [logging.DEBUG, logging.INFO]
        assert 'Selected garch' in log_file.read_text()
        setup_logging(console=False)

    def test_from_config(self, tmp_path):
        """Test handlers follow the logging section of the settings."""
        path = tmp_path / 'config.yaml'
        log_file = tmp_path / 'run.log'
        path.write_text(f"logging:\n  level: WARNING\n  file: {log_file}\n  console: false\n")

        logger = setup_logging(config=load_settings(str(path)).logging)

        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.FileHandler)
        assert logger.handlers[0].level == logging.DEBUG
        setup_logging(console=False)

    def test_unknown_level(self):
        with pytest.raises(ConfigError, match="Unknown log level: LOUD"):
            setup_logging(log_level='LOUD')
