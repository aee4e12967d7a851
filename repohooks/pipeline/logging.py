"""
Logging system for the hook pipeline.

Hooks run inside Git operations, so the console handler writes to stderr
with a terse format by default, while the optional log files keep the full
timestamped format with rotation.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Dict, Optional, Union

# Default log format for log files
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
# Default format for console output
DEFAULT_CONSOLE_FORMAT = "%(message)s"
# Default date format for logs
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_LEVEL_ENV = "GITHOOKS_LOG_LEVEL"


def resolve_log_level(level: Union[int, str, None], default: int = logging.INFO) -> int:
    """Turn a level name such as ``"debug"`` into a logging level number."""
    env_level = os.environ.get(LOG_LEVEL_ENV)
    if env_level:
        level = env_level
    if level is None:
        return default
    if isinstance(level, int):
        return level
    return getattr(logging, str(level).upper(), default)


class HookLogger:
    """Logger manager for the hook pipeline."""

    def __init__(
        self,
        log_dir: Union[str, Path, None] = None,
        log_level: int = logging.INFO,
        log_format: str = DEFAULT_LOG_FORMAT,
        console_format: str = DEFAULT_CONSOLE_FORMAT,
        date_format: str = DEFAULT_DATE_FORMAT,
        max_bytes: int = 1024 * 1024,  # 1MB
        backup_count: int = 3,
        console_output: bool = True,
        log_file_prefix: str = "githooks",
    ):
        """
        Initialize the logger manager.

        Args:
            log_dir: Directory to store log files, or None for console only
            log_level: Logging level
            log_format: Format string for log file messages
            console_format: Format string for console messages
            date_format: Format string for dates in log messages
            max_bytes: Maximum size of each log file before rotation
            backup_count: Number of backup log files to keep
            console_output: Whether to output logs to the console
            log_file_prefix: Prefix for log files
        """
        self.log_dir = Path(log_dir).expanduser() if log_dir else None
        self.log_level = log_level
        self.log_format = log_format
        self.console_format = console_format
        self.date_format = date_format
        self.max_bytes = max_bytes
        self.backup_count = backup_count
        self.console_output = console_output
        self.log_file_prefix = log_file_prefix

        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)

        self._configure_package_logger()

        # Keep track of created loggers
        self._loggers: Dict[str, logging.Logger] = {}

    def _configure_package_logger(self) -> None:
        """Configure the ``repohooks`` package logger."""
        package_logger = logging.getLogger("repohooks")
        package_logger.setLevel(self.log_level)
        package_logger.propagate = False

        # Remove existing handlers to avoid duplicates
        for handler in package_logger.handlers[:]:
            package_logger.removeHandler(handler)
            handler.close()

        if self.console_output:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(self.log_level)
            console_handler.setFormatter(
                logging.Formatter(self.console_format, self.date_format)
            )
            package_logger.addHandler(console_handler)

        if self.log_dir is None:
            return

        # Main log file
        main_log_file = self.log_dir / f"{self.log_file_prefix}.log"
        file_handler = logging.handlers.RotatingFileHandler(
            main_log_file,
            maxBytes=self.max_bytes,
            backupCount=self.backup_count,
        )
        file_handler.setLevel(self.log_level)
        file_handler.setFormatter(
            logging.Formatter(self.log_format, self.date_format)
        )
        package_logger.addHandler(file_handler)

        # Error log file (for ERROR and CRITICAL)
        error_log_file = self.log_dir / f"{self.log_file_prefix}-error.log"
        error_handler = logging.handlers.RotatingFileHandler(
            error_log_file,
            maxBytes=self.max_bytes,
            backupCount=self.backup_count,
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(
            logging.Formatter(self.log_format, self.date_format)
        )
        package_logger.addHandler(error_handler)

    def get_logger(self, name: str, level: Optional[int] = None) -> logging.Logger:
        """
        Get a logger with the given name.

        Args:
            name: Name of the logger
            level: Logging level (defaults to the level set for the manager)

        Returns:
            Logger instance
        """
        if name in self._loggers:
            return self._loggers[name]

        logger = logging.getLogger(name)

        if level is not None:
            logger.setLevel(level)

        self._loggers[name] = logger
        return logger


# Singleton instance
_logger_manager: Optional[HookLogger] = None


def init_logging(
    log_dir: Union[str, Path, None] = None,
    log_level: Union[int, str, None] = None,
    log_format: str = DEFAULT_LOG_FORMAT,
    console_format: str = DEFAULT_CONSOLE_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    max_bytes: int = 1024 * 1024,
    backup_count: int = 3,
    console_output: bool = True,
    log_file_prefix: str = "githooks",
) -> HookLogger:
    """
    Initialize the global logger manager.

    Args:
        log_dir: Directory to store log files, or None for console only
        log_level: Logging level, as a number or a level name
        log_format: Format string for log file messages
        console_format: Format string for console messages
        date_format: Format string for dates in log messages
        max_bytes: Maximum size of each log file before rotation
        backup_count: Number of backup log files to keep
        console_output: Whether to output logs to the console
        log_file_prefix: Prefix for log files

    Returns:
        The global logger manager
    """
    global _logger_manager
    _logger_manager = HookLogger(
        log_dir=log_dir,
        log_level=resolve_log_level(log_level),
        log_format=log_format,
        console_format=console_format,
        date_format=date_format,
        max_bytes=max_bytes,
        backup_count=backup_count,
        console_output=console_output,
        log_file_prefix=log_file_prefix,
    )
    return _logger_manager


def init_logging_from_config(config) -> HookLogger:
    """Initialize logging from a :class:`~repohooks.config.ConfigManager`."""
    log_config = config.get_logging_config()
    return init_logging(
        log_dir=log_config.get("log_dir"),
        log_level=log_config.get("level"),
        console_format=log_config.get("console_format", DEFAULT_CONSOLE_FORMAT),
        console_output=log_config.get("console_output", True),
    )


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Get a logger with the given name from the global manager.

    Args:
        name: Name of the logger
        level: Logging level (defaults to the level set for the manager)

    Returns:
        Logger instance
    """
    global _logger_manager
    if _logger_manager is None:
        init_logging()
    return _logger_manager.get_logger(name, level)
