"""
Launcher Configuration - refresh and directory settings
"""

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List

from ..utils.logging_config import configure_logging
from ..validation import sanitize_file_path
from .validation import ConfigValidationError, validate_config

logger = logging.getLogger(__name__)

DEFAULT_MASTER_SERVER = "master1.odamex.net:15000"


@dataclass
class LauncherConfig:
    """Launcher configuration settings"""

    # Directory
    master_servers: List[str] = field(default_factory=lambda: [DEFAULT_MASTER_SERVER])

    # Refresh behavior
    auto_refresh_enabled: bool = True
    auto_refresh_minutes: int = 5
    max_concurrent_queries: int = 10
    query_timeout: float = 5.0

    # Logging
    log_level: str = "INFO"

    # Persistence
    custom_servers_file: str = "custom_servers.json"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LauncherConfig':
        """Create from dictionary, ignoring unknown keys"""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(sorted(unknown))}")
        return cls(**{k: v for k, v in data.items() if k in known})

    def update(self, **kwargs):
        """Update configuration values"""
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)
            else:
                logger.warning(f"Unknown config key: {key}")

    def validate(self) -> 'LauncherConfig':
        """Validate and normalize all values; raises ConfigValidationError"""
        validate_config(self)
        return self

    def apply_logging(self) -> None:
        """Set the package loggers to log_level"""
        configure_logging(self.log_level)

    @classmethod
    def load(cls, path: str) -> 'LauncherConfig':
        """Load configuration from a JSON file.

        A missing file yields the defaults. A path rejected by
        sanitize_file_path or unreadable contents raise ConfigValidationError.
        """
        checked = sanitize_file_path(path)
        if not checked.valid:
            raise ConfigValidationError(f"Config path {path!r}: {checked.error}")

        try:
            with open(checked.sanitized, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.info(f"No config file at {checked.sanitized}, using defaults")
            return cls()
        except (OSError, ValueError) as e:
            raise ConfigValidationError(f"Cannot read config {checked.sanitized}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigValidationError(f"Config {checked.sanitized} must contain a JSON object")

        return cls.from_dict(data).validate()

    def save(self, path: str) -> None:
        """Write configuration to a JSON file"""
        checked = sanitize_file_path(path)
        if not checked.valid:
            raise ConfigValidationError(f"Config path {path!r}: {checked.error}")

        with open(checked.sanitized, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.debug(f"Saved config to {checked.sanitized}")
