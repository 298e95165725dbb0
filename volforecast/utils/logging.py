"""
Package logger setup.

Every module logs through `logging.getLogger(__name__)`, so all of them are
children of the `volforecast` logger configured here. Fit and selection
details go out at DEBUG, prediction and backtest summaries at INFO, and
excluded candidates at WARNING.
"""

import logging
from pathlib import Path
from typing import Optional

from volforecast.utils.config_loader import ConfigError, LoggingConfig

LOGGER_NAME = "volforecast"


def _level(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    if not isinstance(level, int):
        raise ConfigError(f"Unknown log level: {name}")
    return level


def _reset(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def setup_logging(
    log_file: Optional[str] = None,
    log_level: Optional[str] = None,
    console: Optional[bool] = None,
    config: Optional[LoggingConfig] = None
) -> logging.Logger:
    """
    Attach console and file handlers to the package logger.

    Explicit arguments override the matching LoggingConfig fields. Calling
    again replaces the previous handlers.

    Args:
        log_file: Log file path; parent directories are created
        log_level: Console level name (DEBUG, INFO, WARNING, ...)
        console: Whether to log to stderr
        config: Logging section of Settings, defaults when None

    Returns:
        The `volforecast` logger

    Raises:
        ConfigError: If a level name is not recognised
    """
    config = config or LoggingConfig()
    log_file = config.file if log_file is None else log_file
    console_level = _level(config.level if log_level is None else log_level)
    file_level = _level(config.file_level)
    console = config.console if console is None else console

    logger = logging.getLogger(LOGGER_NAME)
    _reset(logger)
    logger.setLevel(min(console_level, file_level) if log_file else console_level)

    formatter = logging.Formatter(config.format, datefmt=config.datefmt)

    if console:
        stream = logging.StreamHandler()
        stream.setLevel(console_level)
        stream.setFormatter(formatter)
        logger.addHandler(stream)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path)
        file_handler.setLevel(file_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
