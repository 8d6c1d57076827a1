"""Logging setup shared by the CLI and the API."""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from config.settings import LoggingConfig

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[1;31m",
}
RESET = "\033[0m"


class ColorFormatter(logging.Formatter):
    """Formatter that colors the level name for terminal output."""

    def format(self, record: logging.LogRecord) -> str:
        color = LEVEL_COLORS.get(record.levelno)
        if not color:
            return super().format(record)
        original = record.levelname
        record.levelname = f"{color}{original}{RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def setup_logging(config: LoggingConfig | str | None = None) -> None:
    """
    Configure the root logger.

    Args:
        config: A LoggingConfig, a bare level name, or None for defaults.
            Safe to call multiple times: previous handlers are replaced.
    """
    if config is None:
        config = LoggingConfig()
    elif isinstance(config, str):
        config = LoggingConfig(level=config)

    root = logging.getLogger()
    root.setLevel(config.level.upper())
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    if config.console.enabled:
        console = logging.StreamHandler(sys.stderr)
        formatter_cls = ColorFormatter if config.console.colorized else logging.Formatter
        console.setFormatter(formatter_cls(LOG_FORMAT))
        root.addHandler(console)

    if config.file.enabled:
        log_path = Path(config.file.path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=config.file.max_size_mb * 1024 * 1024,
            backupCount=config.file.backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(file_handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
