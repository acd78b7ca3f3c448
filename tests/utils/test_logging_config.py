"""
Unit tests for the shared logging setup.
"""

import logging

import pytest

from src.utils.logging_config import setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


class TestSetupLogging:
    def test_level_by_name(self, restore_root_logger):
        root = setup_logging("debug")
        assert root.level == logging.DEBUG

    def test_unknown_level_defaults_to_info(self, restore_root_logger):
        assert setup_logging("chatty").level == logging.INFO

    def test_log_file_receives_records(self, restore_root_logger, tmp_path):
        log_file = tmp_path / "logs" / "scan.log"
        setup_logging(logging.INFO, log_file=log_file)

        logging.getLogger("src.rectification.test").info("hello from test")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "hello from test" in log_file.read_text(encoding="utf-8")
