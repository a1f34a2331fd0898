"""
Logging setup and configuration utilities.

Log records are written through loguru. Records emitted with the standard
``logging`` module, which every hotconf module uses, are forwarded to loguru
by an intercept handler installed on the root logger.
"""

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger as loguru_logger

from ...core.interfaces.lifecycle import IConfigurable
from ...core.options.node import Options

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    log_directory: str = "logs"
    file_name: str = "hotconf.log"
    max_file_size: str = "10MB"
    backup_count: int = 5
    console_enabled: bool = True
    file_enabled: bool = False

    @classmethod
    def from_options(cls, options: Options) -> 'LoggingConfig':
        """Build a configuration from a ``logging`` section."""
        defaults = cls()
        return cls(
            level=options.get_string("level", defaults.level).upper(),
            log_directory=options.get_string("logDirectory", defaults.log_directory),
            file_name=options.get_string("fileName", defaults.file_name),
            max_file_size=options.get_string("maxFileSize", defaults.max_file_size),
            backup_count=options.get_int("backupCount", defaults.backup_count),
            console_enabled=options.get_bool("consoleEnabled", defaults.console_enabled),
            file_enabled=options.get_bool("fileEnabled", defaults.file_enabled),
        )


class InterceptHandler(logging.Handler):
    """Forward standard library log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: Any = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame = logging.currentframe()
        depth = 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        loguru_logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage())


def setup_logging(config: Optional[LoggingConfig] = None) -> None:
    """
    Setup logging with the given configuration.

    Args:
        config: Logging configuration, defaults when omitted
    """
    config = config or LoggingConfig()

    loguru_logger.remove()

    if config.console_enabled:
        loguru_logger.add(
            sys.stderr,
            format=CONSOLE_FORMAT,
            level=config.level,
            colorize=True,
            backtrace=True,
            diagnose=False
        )

    if config.file_enabled:
        log_dir = Path(config.log_directory)
        log_dir.mkdir(parents=True, exist_ok=True)
        loguru_logger.add(
            log_dir / config.file_name,
            format=FILE_FORMAT,
            level=config.level,
            rotation=config.max_file_size,
            retention=config.backup_count,
            compression="zip",
            backtrace=True,
            diagnose=False
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)


class LoggingManager(IConfigurable):
    """
    Keeps logging configured from a configuration section.

    Register it with a configurator to change log levels and outputs while
    the process runs.
    """

    def __init__(self, config: Optional[LoggingConfig] = None) -> None:
        self._config = config or LoggingConfig()
        self._configured = 0
        self._logger = logging.getLogger(__name__)

    @property
    def config(self) -> LoggingConfig:
        return self._config

    @property
    def configured(self) -> int:
        """Number of times logging has been (re)configured."""
        return self._configured

    def configure(self, options: Options, first: bool) -> None:
        config = LoggingConfig.from_options(options)
        if not first and config == self._config:
            return

        self._config = config
        setup_logging(self._config)
        self._configured += 1

        if first:
            self._logger.info(f"Logging configured, level {config.level}")
        else:
            self._logger.info(f"Logging configuration updated, level {config.level}")

    def check_health(self) -> Dict[str, Any]:
        """Report the active logging configuration."""
        log_dir = Path(self._config.log_directory)
        return {
            'healthy': True,
            'status': 'configured' if self._configured else 'default',
            'details': {
                'log_level': self._config.level,
                'log_directory': str(log_dir),
                'log_directory_exists': log_dir.exists(),
                'console_enabled': self._config.console_enabled,
                'file_enabled': self._config.file_enabled,
            }
        }
