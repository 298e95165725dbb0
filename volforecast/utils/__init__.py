"""
Utility functions for the volatility forecasting stack.

This module provides:
- Exception types
- Configuration loading
- Logging configuration
- Distribution helpers (probit, chi-squared survival, Student-t moments)
- Argument validation
"""

from volforecast.utils.config_loader import (
    CalibrationError,
    ConfigError,
    DataError,
    FitConfig,
    LoggingConfig,
    PredictionConfig,
    Settings,
    ValidationError,
    load_config,
    load_settings,
    validate_config,
)
from volforecast.utils.distributions import (
    EXPECTED_ABS_NORMAL,
    chi2_survival,
    expected_abs_student_t,
    inverse_normal_cdf,
    probit,
)
from volforecast.utils.logging import setup_logging


def validate_numeric_range(
    value: float,
    min_val: float,
    max_val: float,
    name: str = "value"
) -> float:
    """
    Validate that a numeric value is within a specified range.

    Args:
        value: Value to validate
        min_val: Minimum allowed value
        max_val: Maximum allowed value
        name: Name of the parameter for error messages

    Returns:
        The validated value

    Raises:
        ValidationError: If value is outside the range
    """
    if not (min_val <= value <= max_val):
        raise ValidationError(
            f"{name} must be between {min_val} and {max_val}, got {value}"
        )
    return value


__all__ = [
    # Exceptions
    'CalibrationError',
    'ConfigError',
    'DataError',
    'ValidationError',
    # Config
    'FitConfig',
    'LoggingConfig',
    'PredictionConfig',
    'Settings',
    'load_config',
    'load_settings',
    'validate_config',
    # Logging
    'setup_logging',
    # Distributions
    'EXPECTED_ABS_NORMAL',
    'chi2_survival',
    'expected_abs_student_t',
    'inverse_normal_cdf',
    'probit',
    # Validation
    'validate_numeric_range',
]
