"""
Logging setup for the myrc server and client.

Provides consistent logging across the application with:
- A colored console format for interactive runs
- Optional rotating log files (full log plus an errors-only log)
- Per-component level overrides
- Presets for development, production and testing

Usage:
    import logging

    logger = logging.getLogger(__name__)
    logger.info("Server started")

Configuration:
    from myrc.core.logging import configure_logging, LogConfig

    configure_logging(LogConfig(level="DEBUG", file_output=False))
"""

import logging
import logging.handlers
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union


@dataclass
class LogConfig:
    """
    Configuration for the logging system.

    Attributes:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for log files
        console_output: Whether to output to console
        file_output: Whether to output to file
        max_bytes: Maximum size of log file before rotation (bytes)
        backup_count: Number of backup files to keep
        format_string: Custom format string for log messages
        date_format: Custom date format string
        component_levels: Dict mapping logger names to log levels
    """
    level: str = "INFO"
    log_dir: str = "./logs"
    console_output: bool = True
    file_output: bool = False
    max_bytes: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5
    format_string: Optional[str] = None
    date_format: str = "%Y-%m-%d %H:%M:%S"
    component_levels: Dict[str, str] = field(default_factory=dict)


class ColoredFormatter(logging.Formatter):
    """
    Formatter that adds color to the level name on console output.
    """

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'
    }

    def __init__(self, fmt: str, datefmt: str = None, use_colors: bool = True):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors and sys.platform != 'win32'

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_colors or record.levelname not in self.COLORS:
            return super().format(record)
        # Handlers share the record, so restore the plain name afterwards.
        levelname = record.levelname
        record.levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def get_default_format() -> str:
    """Get the default log format string."""
    return "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_detailed_format() -> str:
    """Get a detailed log format string with more context."""
    return (
        "%(asctime)s - %(name)s - %(levelname)s - "
        "[%(filename)s:%(lineno)d - %(funcName)s] - %(message)s"
    )


def _to_level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


class LoggingManager:
    """
    Owns the handlers installed on the root logger.

    Reconfiguring replaces previously installed handlers, so it is safe to
    call configure() more than once (tests do).
    """

    def __init__(self):
        self._config: Optional[LogConfig] = None
        self._handlers: List[logging.Handler] = []

    @property
    def config(self) -> Optional[LogConfig]:
        """Get the active configuration."""
        return self._config

    @property
    def handlers(self) -> List[logging.Handler]:
        """Get the handlers installed by this manager."""
        return list(self._handlers)

    def configure(self, config: LogConfig) -> None:
        """
        Configure the logging system.

        Args:
            config: Logging configuration
        """
        level = _to_level(config.level)
        self._config = config

        root_logger = logging.getLogger()
        root_logger.setLevel(level)

        for handler in self._handlers:
            root_logger.removeHandler(handler)
            handler.close()
        self._handlers = []

        if config.console_output:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(level)
            fmt = config.format_string or get_default_format()
            console_handler.setFormatter(ColoredFormatter(fmt, config.date_format))
            self._install(console_handler)

        if config.file_output:
            Path(config.log_dir).mkdir(parents=True, exist_ok=True)
            fmt = config.format_string or get_detailed_format()
            formatter = logging.Formatter(fmt, config.date_format)

            file_handler = logging.handlers.RotatingFileHandler(
                os.path.join(config.log_dir, "myrc.log"),
                maxBytes=config.max_bytes,
                backupCount=config.backup_count,
                encoding='utf-8'
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            self._install(file_handler)

            error_handler = logging.handlers.RotatingFileHandler(
                os.path.join(config.log_dir, "myrc_errors.log"),
                maxBytes=config.max_bytes,
                backupCount=config.backup_count,
                encoding='utf-8'
            )
            error_handler.setLevel(logging.ERROR)
            error_handler.setFormatter(formatter)
            self._install(error_handler)

        for component, component_level in config.component_levels.items():
            logging.getLogger(component).setLevel(_to_level(component_level))

        logging.getLogger(__name__).debug("Logging configured with level: %s", config.level)

    def _install(self, handler: logging.Handler) -> None:
        logging.getLogger().addHandler(handler)
        self._handlers.append(handler)


# Global logging manager instance
_logging_manager = LoggingManager()


def configure_logging(config: LogConfig) -> None:
    """
    Configure the logging system.

    Args:
        config: Logging configuration
    """
    _logging_manager.configure(config)


def get_logging_manager() -> LoggingManager:
    """Get the global logging manager instance."""
    return _logging_manager


def create_development_config(level: str = "DEBUG") -> LogConfig:
    """Console-only, verbose."""
    return LogConfig(
        level=level,
        console_output=True,
        file_output=False,
        format_string=get_detailed_format(),
        component_levels={"asyncio": "WARNING"},
    )


def create_production_config(level: str = "INFO") -> LogConfig:
    """Console plus rotating files."""
    return LogConfig(
        level=level,
        log_dir="./logs",
        console_output=True,
        file_output=True,
        max_bytes=50 * 1024 * 1024,  # 50MB
        backup_count=10,
        component_levels={"asyncio": "ERROR"},
    )


def create_testing_config(level: str = "DEBUG") -> LogConfig:
    """Terse console output, no files."""
    return LogConfig(
        level=level,
        console_output=True,
        file_output=False,
        format_string="%(levelname)s - %(name)s - %(message)s",
    )


def auto_configure(env: Optional[str] = None, level: Optional[str] = None) -> None:
    """
    Configure logging from an environment preset.

    Args:
        env: Environment name (development, production, testing).
             If None, read from MYRC_ENV.
        level: Optional level overriding the preset's default
    """
    if env is None:
        env = os.environ.get("MYRC_ENV", "development")
    env = env.lower()

    presets = {
        "development": create_development_config,
        "dev": create_development_config,
        "production": create_production_config,
        "prod": create_production_config,
        "testing": create_testing_config,
        "test": create_testing_config,
    }
    factory = presets.get(env, create_development_config)
    config = factory(level) if level else factory()
    configure_logging(config)

    logging.getLogger(__name__).info("Logging auto-configured for environment: %s", env)


__all__ = [
    'LogConfig',
    'LoggingManager',
    'ColoredFormatter',
    'configure_logging',
    'get_logging_manager',
    'create_development_config',
    'create_production_config',
    'create_testing_config',
    'auto_configure',
    'get_default_format',
    'get_detailed_format',
]
