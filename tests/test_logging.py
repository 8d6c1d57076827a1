"""Tests for logging setup."""
import logging
from logging.handlers import RotatingFileHandler
import pytest
from config.settings import LoggingConfig, LogConsoleConfig, LogFileConfig
from utils import setup_logging
from utils.logging import ColorFormatter


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    before, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in before:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def test_console_only_by_level_name():
    setup_logging("debug")
    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, ColorFormatter)


def test_file_handler(tmp_path):
    log_path = tmp_path / "logs" / "companion.log"
    setup_logging(LoggingConfig(
        level="INFO",
        file=LogFileConfig(enabled=True, path=str(log_path)),
        console=LogConsoleConfig(enabled=False),
    ))
    root = logging.getLogger()
    assert [type(h) for h in root.handlers] == [RotatingFileHandler]

    logging.getLogger("companion.test").info("probe finished")
    root.handlers[0].flush()
    assert "probe finished" in log_path.read_text(encoding="utf-8")


def test_color_formatter_restores_levelname():
    record = logging.LogRecord("x", logging.WARNING, __file__, 1, "careful", None, None)
    output = ColorFormatter("%(levelname)s %(message)s").format(record)
    assert "\033[33m" in output
    assert record.levelname == "WARNING"
