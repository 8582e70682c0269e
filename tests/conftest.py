"""
Shared fixtures
"""

import logging

import pytest

from pyodamex.utils.logging_config import ModuleLogger


@pytest.fixture
def restore_logging():
    """Hand the package loggers back to pytest's capture after configure_logging()"""
    root_level = logging.getLogger().level
    yield
    logging.getLogger().setLevel(root_level)
    for name in ModuleLogger.MODULE_PREFIXES:
        module_logger = logging.getLogger(name)
        module_logger.handlers.clear()
        module_logger.propagate = True
        module_logger.setLevel(logging.NOTSET)
