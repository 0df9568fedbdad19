import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

from distkit.utils.config import LoggingConfig


class ColorizedFormatter(logging.Formatter):
    """Formatter that colors the level name of console records.

    The record passed in is left untouched, so file handlers sharing it
    still see the plain level name.
    """

    RESET = "\033[0m"
    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",  # cyan
        logging.INFO: "\033[32m",  # green
        logging.WARNING: "\033[33m",  # yellow
        logging.ERROR: "\033[31m",  # red
        logging.CRITICAL: "\033[41m",  # red background
    }

    def __init__(self, fmt: str, datefmt: str, use_colors: bool = True):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno)
        if not self.use_colors or color is None:
            return super().format(record)
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(colored)


def _console_handler(config: LoggingConfig) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    use_colors = config.use_colors and sys.stdout.isatty()
    handler.setFormatter(ColorizedFormatter(config.format, config.date_format, use_colors=use_colors))
    return handler


def _file_handler(config: LoggingConfig) -> logging.Handler:
    log_path = Path(config.log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(log_path, maxBytes=config.max_bytes, backupCount=config.backup_count)
    handler.setFormatter(logging.Formatter(config.format, config.date_format))
    return handler


def quiet_dependencies(config: LoggingConfig) -> List[str]:
    """Hold the configured dependency loggers at ``config.quiet_level``.

    Returns:
        Names of the loggers that were adjusted
    """
    level = getattr(logging, config.quiet_level)
    for name in config.quiet_loggers:
        logging.getLogger(name).setLevel(level)
    return list(config.quiet_loggers)


def setup_logging(config: Optional[LoggingConfig] = None) -> None:
    """
    Configure logging for scripts and notebooks that use distkit.

    Replaces any existing root configuration with a console handler and, when
    ``config.log_file`` is set, a rotating file handler.

    Args:
        config: Logging settings (default: ``LoggingConfig()``)
    """
    config = config if config is not None else LoggingConfig()

    handlers = [_console_handler(config)]
    if config.log_file:
        handlers.append(_file_handler(config))

    logging.basicConfig(level=getattr(logging, config.level), handlers=handlers, force=True)
    quieted = quiet_dependencies(config)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured with level {config.level}")
    if config.log_file:
        logger.info(f"Logging to file: {config.log_file}")
    if quieted:
        logger.debug(f"Dependency loggers held at {config.quiet_level}: {', '.join(quieted)}")


def get_logger(name: str) -> logging.Logger:
    """Logger for a distkit module (pass ``__name__``)."""
    return logging.getLogger(name)
