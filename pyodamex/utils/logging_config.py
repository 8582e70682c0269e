"""
Logging configuration for pyodamex with clear module prefixes
"""

import logging
from typing import Union


class ModuleLogger:
    """Custom logger that adds module-specific prefixes"""

    # Module prefix mapping
    MODULE_PREFIXES = {
        'pyodamex.validation': '[VALIDATE]',
        'pyodamex.serverlist.store': '[STORE]',
        'pyodamex.serverlist.refresher': '[REFRESH]',
        'pyodamex.serverlist.custom_servers': '[CUSTOM]',
        'pyodamex.config': '[CONFIG]',
        'pyodamex.events': '[EVENT]',
    }

    @classmethod
    def prefix_for(cls, name: str) -> str:
        for module_name, module_prefix in cls.MODULE_PREFIXES.items():
            if name.startswith(module_name):
                return module_prefix
        return '[PYODAMEX]'

    @classmethod
    def get_logger(cls, name: str, level: int = logging.DEBUG) -> logging.Logger:
        """Get a logger with appropriate prefix for the module"""
        logger = logging.getLogger(name)
        logger.setLevel(level)

        # Don't add handler if already configured
        if logger.handlers:
            return logger

        handler = logging.StreamHandler()
        handler.setFormatter(ModulePrefixFormatter(cls.prefix_for(name)))

        logger.addHandler(handler)
        logger.propagate = False  # Don't propagate to root logger

        return logger


class ModulePrefixFormatter(logging.Formatter):
    """Custom formatter that adds module prefix to log messages"""

    def __init__(self, prefix: str):
        self.prefix = prefix
        super().__init__(
            fmt='%(asctime)s - %(prefix)s %(levelname)s - %(message)s',
            datefmt='%H:%M:%S'
        )

    def format(self, record):
        record.prefix = self.prefix
        return super().format(record)


def configure_logging(level: Union[int, str] = logging.INFO):
    """Configure logging for the whole package"""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logging.getLogger().setLevel(level)

    for module_name in ModuleLogger.MODULE_PREFIXES:
        ModuleLogger.get_logger(module_name, level)
