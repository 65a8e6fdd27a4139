"""
Tests for the logging setup in cnproc_sentinel.log.
"""

import logging

import pytest
from rich.logging import RichHandler

from cnproc_sentinel import log


@pytest.fixture
def root_logger():
    """Restore the root logger's handlers and level after the test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_installs_rich_handler_on_stderr(self, root_logger):
        log.setup_logging("DEBUG")

        rich_handlers = [h for h in root_logger.handlers if isinstance(h, RichHandler)]
        assert len(rich_handlers) == 1
        assert rich_handlers[0].console is log.stderr_console
        assert log.stderr_console.stderr
        assert root_logger.level == logging.DEBUG

    def test_replaces_existing_handlers(self, root_logger):
        """Calling it twice should not stack handlers."""
        log.setup_logging("INFO")
        log.setup_logging("INFO")

        assert len(root_logger.handlers) == 1

    def test_default_level_from_config(self, root_logger, reload_config):
        """CNPROC_SENTINEL_LOG_LEVEL should set the level, case-insensitively."""
        config = reload_config(CNPROC_SENTINEL_LOG_LEVEL="warning")
        assert config.LOG_LEVEL == "WARNING"

        log.setup_logging()

        assert root_logger.level == logging.WARNING

    def test_get_logger(self):
        assert log.get_logger("cnproc_sentinel.x") is logging.getLogger("cnproc_sentinel.x")
