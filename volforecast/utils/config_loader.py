"""
Configuration loading utilities.

Calibration and prediction defaults live in two frozen dataclasses so that
penalty values, variance floors and optimizer limits are named constants that
can be overridden per call (or per test) instead of magic numbers buried in
objective functions.
"""

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple

import yaml


# Custom Exception Classes
class ConfigError(Exception):
    """Raised when there are issues with configuration."""
    pass


class DataError(Exception):
    """Raised when there are issues with input data (too short, invalid prices)."""
    pass


class ValidationError(Exception):
    """Raised when argument validation fails."""
    pass


class CalibrationError(Exception):
    """Raised when a fitted model produces an invalid variance series."""
    pass


@dataclass(frozen=True)
class FitConfig:
    """
    Calibration settings shared by every variance model.

    Attributes:
        max_iter: Nelder-Mead iteration limit
        tol: Simplex value-range tolerance
        restarts: Extra multi-start runs (0 = single Nelder-Mead run)
        penalty: Objective value returned for infeasible parameters
        variance_floor: Smallest admissible conditional variance
        df_bounds: Open lower / closed upper bound for Student-t df
        log_variance_clip: Symmetric clamp for EGARCH log-variance
        stationarity_bound: Upper bound on persistence inside objectives
    """
    max_iter: int = 1000
    tol: float = 1e-8
    restarts: int = 0
    penalty: float = 1e10
    variance_floor: float = 1e-12
    df_bounds: Tuple[float, float] = (2.01, 100.0)
    log_variance_clip: float = 50.0
    stationarity_bound: float = 0.9999

    def with_overrides(self, max_iter: Optional[int] = None,
                       tol: Optional[float] = None) -> 'FitConfig':
        """Return a copy with per-call optimizer overrides applied."""
        changes = {}
        if max_iter is not None:
            changes['max_iter'] = max_iter
        if tol is not None:
            changes['tol'] = tol
        return replace(self, **changes) if changes else self


@dataclass(frozen=True)
class PredictionConfig:
    """Settings for price-band prediction and walk-forward backtesting."""
    confidence: float = 0.6827
    ljung_box_lags: int = 10
    reliability_p_value: float = 0.05
    max_persistence: float = 0.999
    backtest_window_ratio: float = 0.75
    show_progress: bool = False


@dataclass(frozen=True)
class LoggingConfig:
    """
    Handlers for the package logger.

    Attributes:
        level: Console level name
        file: Log file path, None for no file
        file_level: File handler level name
        console: Whether to log to stderr
        format, datefmt: logging.Formatter arguments
    """
    level: str = 'INFO'
    file: Optional[str] = None
    file_level: str = 'DEBUG'
    console: bool = True
    format: str = '[%(asctime)s] %(levelname)s: %(message)s'
    datefmt: str = '%Y-%m-%d %H:%M:%S'


@dataclass(frozen=True)
class Settings:
    """Top-level settings bundle loaded from config.yaml."""
    fit: FitConfig = FitConfig()
    prediction: PredictionConfig = PredictionConfig()
    logging: LoggingConfig = LoggingConfig()


def load_config(config_path: str = 'config.yaml') -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file

    Returns:
        Dictionary with configuration

    Raises:
        ConfigError: If config file cannot be loaded
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_file, 'r') as f:
            config = yaml.safe_load(f)
        return config or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse config file: {e}") from e
    except Exception as e:
        raise ConfigError(f"Failed to load config: {e}") from e


def validate_config(config: Any, allowed_keys: Iterable[str],
                    section: Optional[str] = None) -> None:
    """
    Check that a config mapping holds only known keys.

    Args:
        config: Parsed YAML (the whole file or one section)
        allowed_keys: Key names accepted at this level
        section: Section name, or None for the top level

    Raises:
        ConfigError: If config is not a mapping or has unknown keys
    """
    where = "config file" if section is None else f"config section '{section}'"
    if not isinstance(config, dict):
        raise ConfigError(f"The {where} must be a mapping")

    unknown = sorted(set(config) - set(allowed_keys))
    if unknown:
        raise ConfigError(f"Unknown keys in {where}: {unknown}")


def _build_section(cls, section: Optional[Dict[str, Any]], name: str):
    if section is None:
        return cls()
    validate_config(section, [f.name for f in fields(cls)], name)

    values = dict(section)
    if 'df_bounds' in values:
        values['df_bounds'] = tuple(values['df_bounds'])
    return cls(**values)


def load_settings(config_path: Optional[str] = None) -> Settings:
    """
    Build Settings from a YAML file.

    Missing sections or keys keep their defaults.

    Args:
        config_path: Path to config file, or None for pure defaults

    Returns:
        Settings instance

    Raises:
        ConfigError: If the file is missing, malformed or has unknown keys
    """
    if config_path is None:
        return Settings()

    config = load_config(config_path)
    validate_config(config, [f.name for f in fields(Settings)])

    return Settings(
        fit=_build_section(FitConfig, config.get('fit'), 'fit'),
        prediction=_build_section(PredictionConfig, config.get('prediction'), 'prediction'),
        logging=_build_section(LoggingConfig, config.get('logging'), 'logging'),
    )
