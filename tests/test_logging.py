"""Test the centralized logging functionality."""

import logging
from io import StringIO

from fibertopo.log_config import get_logger, set_global_log_level


def test_set_global_log_level():
    """Test that set_global_log_level configures logging properly."""
    set_global_log_level(logging.WARNING)
    assert logging.getLogger("fibertopo").level == logging.WARNING

    set_global_log_level(logging.DEBUG)
    assert logging.getLogger("fibertopo").level == logging.DEBUG

    set_global_log_level(logging.INFO)
    assert logging.getLogger("fibertopo").level == logging.INFO


def test_logger_hierarchy():
    """Test that child loggers inherit from parent."""
    set_global_log_level(logging.WARNING)

    child_logger = get_logger("fibertopo.test.child")

    assert child_logger.getEffectiveLevel() == logging.WARNING


def test_module_loggers_are_named_after_modules():
    """Engine modules log under the package hierarchy."""
    from fibertopo import normalizer, topology

    assert normalizer.logger.name == "fibertopo.normalizer"
    assert topology.logger.name == "fibertopo.topology"


def test_logging_output():
    """Test that logging outputs at correct levels."""
    logger = get_logger("fibertopo.test.output")

    log_capture = StringIO()
    handler = logging.StreamHandler(log_capture)
    handler.setLevel(logging.DEBUG)

    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    logger.debug("Debug message")
    logger.warning("Warning message")

    log_output = log_capture.getvalue()
    assert "Debug message" in log_output
    assert "Warning message" in log_output

    logger.removeHandler(handler)
