from distkit.utils.config import LoggingConfig
from distkit.utils.logging import ColorizedFormatter, get_logger, quiet_dependencies, setup_logging

__all__ = [
    "LoggingConfig",
    "ColorizedFormatter",
    "get_logger",
    "quiet_dependencies",
    "setup_logging",
]
