"""Tests for logging setup."""
import logging

import pytest
from rich.logging import RichHandler

from stream2drive import PACKAGE_LOGGERS, client, setup_logging
from stream2drive.cli.main import configure_logging
from stream2drive.core import auth
from stream2drive.core.api import endpoint
from stream2drive.core.logging import get_logger
from stream2drive.core.transfer import engine, sinks, sources


@pytest.fixture
def restore_logging():
    """Restore root and package logger state after a test."""
    root = logging.getLogger()
    handlers, root_level = list(root.handlers), root.level
    levels = {name: logging.getLogger(name).level for name in PACKAGE_LOGGERS}
    yield
    root.handlers[:] = handlers
    root.setLevel(root_level)
    for name, level in levels.items():
        logging.getLogger(name).setLevel(level)


class TestGetLogger:
    """Test suite for get_logger function."""

    def test_get_logger_with_name(self):
        """Test getting logger with name."""
        logger = get_logger('stream2drive.test_module')

        assert logger.name == 'stream2drive.test_module'
        assert isinstance(logger, logging.Logger)

    def test_propagates(self):
        """Test records reach the root handlers."""
        assert get_logger('stream2drive.propagating').propagate is True

    def test_warning_without_root_handlers(self, monkeypatch):
        """Test loggers stay quiet while nothing is configured."""
        monkeypatch.setattr(logging.getLogger(), 'handlers', [])
        logger = get_logger('stream2drive.quiet_module')
        try:
            assert logger.level == logging.WARNING
        finally:
            logger.setLevel(logging.NOTSET)


class TestSetupLogging:
    """Test suite for setup_logging."""

    def test_sets_package_levels(self, restore_logging):
        """Test the package loggers get the requested level."""
        setup_logging(logging.DEBUG)

        for name in PACKAGE_LOGGERS:
            assert logging.getLogger(name).level == logging.DEBUG


class TestCliLogging:
    """Test suite for the CLI logging configuration."""

    @pytest.mark.parametrize("verbose,level", [
        (0, logging.CRITICAL),
        (1, logging.INFO),
        (2, logging.DEBUG),
        (3, logging.DEBUG),
    ])
    def test_verbosity_levels(self, restore_logging, verbose, level):
        """Test -v counts map to log levels."""
        configure_logging(verbose)

        assert logging.getLogger('stream2drive').level == level
        assert logging.getLogger().level == level

    def test_rich_handler(self, restore_logging):
        """Test records are rendered by rich."""
        configure_logging(1)

        assert any(isinstance(h, RichHandler) for h in logging.getLogger().handlers)

    def test_verbose_reaches_module_loggers(self, restore_logging):
        """Test -vv enables DEBUG on loggers created before any handler existed."""
        for name in PACKAGE_LOGGERS[1:]:
            logging.getLogger(name).setLevel(logging.WARNING)

        configure_logging(2)

        for name in PACKAGE_LOGGERS:
            assert logging.getLogger(name).getEffectiveLevel() == logging.DEBUG
            assert logging.getLogger(name).isEnabledFor(logging.DEBUG)


class TestModuleLoggers:
    """Test suite for per-module logger names."""

    @pytest.mark.parametrize("module", [client, auth, endpoint, engine, sinks, sources])
    def test_named_after_module(self, module):
        """Test each module logs under its own import path."""
        assert module.logger.name == module.__name__
        assert module.logger.name in PACKAGE_LOGGERS
