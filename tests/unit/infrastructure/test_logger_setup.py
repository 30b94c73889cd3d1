import logging
import logging.handlers

import pytest

from dexpipe.infrastructure.monitoring.logger_setup import setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def test_level_names_are_accepted(restore_root_logger):
    setup_logging(log_level="debug")
    assert restore_root_logger.level == logging.DEBUG


def test_unknown_level_falls_back_to_warning(restore_root_logger):
    setup_logging(log_level="chatty")
    assert restore_root_logger.level == logging.WARNING


def test_file_handler_is_added(restore_root_logger, tmp_path):
    log_file = tmp_path / "logs" / "dexpipe.log"
    setup_logging(log_level=logging.INFO, log_file=log_file)

    file_handlers = [h for h in restore_root_logger.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
    assert len(file_handlers) == 1
    logging.getLogger("dexpipe.test").info("hello")
    file_handlers[0].flush()
    assert "hello" in log_file.read_text(encoding="utf-8")
