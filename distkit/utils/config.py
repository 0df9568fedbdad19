from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _check_level(value: str, name: str) -> str:
    level = str(value).upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"Invalid {name}: {value}. Must be one of {LOG_LEVELS}")
    return level


@dataclass
class LoggingConfig:
    """Logging settings, read from the ``logging`` section of a distkit config.

    Attributes:
        level: Level applied to the root logger
        log_file: Rotating log file, its directory is created on setup (None for console only)
        format: Record format shared by console and file output
        date_format: Timestamp format
        use_colors: Color level names on the console when it is a terminal
        max_bytes: Size at which the log file is rotated
        backup_count: Rotated files kept
        quiet_loggers: Dependency loggers held at ``quiet_level``; joblib reports
            every dispatched batch at INFO and matplotlib scans fonts at DEBUG
        quiet_level: Level for ``quiet_loggers``
    """

    level: str = "INFO"
    log_file: Optional[str] = None
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    use_colors: bool = True
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5
    quiet_loggers: List[str] = field(default_factory=lambda: ["joblib", "matplotlib"])
    quiet_level: str = "WARNING"

    def __post_init__(self):
        self.level = _check_level(self.level, "log level")
        self.quiet_level = _check_level(self.quiet_level, "quiet_level")
        if self.log_file:
            self.log_file = str(Path(self.log_file))

        # YAML may give a single name
        if isinstance(self.quiet_loggers, str):
            self.quiet_loggers = [self.quiet_loggers]
        self.quiet_loggers = [str(name) for name in self.quiet_loggers]

        if self.max_bytes <= 0:
            raise ValueError(f"max_bytes must be positive, got {self.max_bytes}")
        if self.backup_count < 0:
            raise ValueError(f"backup_count must be non-negative, got {self.backup_count}")
