"""
Configuration system for pyodamex
"""

from .client_config import LauncherConfig
from .validation import ConfigValidationError

__all__ = ['LauncherConfig', 'ConfigValidationError']
