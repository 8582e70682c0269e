"""
Configuration validation utilities
"""

import logging

from ..validation import validate_server_address

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class ConfigValidationError(Exception):
    """Raised when configuration validation fails"""
    pass


def validate_master_server(address: str) -> str:
    """Validate a master server address (host:port)"""
    result = validate_server_address(address)
    if not result.valid:
        raise ConfigValidationError(f"Master server {address!r}: {result.error}")

    return result.sanitized


def validate_refresh_minutes(minutes: int) -> int:
    """Validate auto-refresh interval"""
    if isinstance(minutes, bool) or not isinstance(minutes, int):
        raise ConfigValidationError("Auto-refresh interval must be an integer number of minutes")

    if minutes <= 0:
        raise ConfigValidationError("Auto-refresh interval must be greater than 0")

    return minutes


def validate_concurrency(count: int) -> int:
    """Validate the number of concurrent server queries"""
    if isinstance(count, bool) or not isinstance(count, int):
        raise ConfigValidationError("Concurrent query limit must be an integer")

    if count < 1:
        raise ConfigValidationError("Concurrent query limit must be at least 1")

    return count


def validate_timeout(timeout: float) -> float:
    """Validate timeout value"""
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
        raise ConfigValidationError("Timeout must be a number")

    if timeout <= 0:
        raise ConfigValidationError("Timeout must be greater than 0")

    return float(timeout)


def validate_log_level(level: str) -> str:
    """Validate logging level name"""
    if not isinstance(level, str):
        raise ConfigValidationError("Log level must be a string")

    level = level.upper()
    if level not in VALID_LOG_LEVELS:
        raise ConfigValidationError(f"Log level must be one of: {', '.join(VALID_LOG_LEVELS)}")

    return level


def validate_config(config) -> None:
    """Validate every field of a LauncherConfig, normalizing in place"""
    if not config.master_servers:
        raise ConfigValidationError("At least one master server is required")

    config.master_servers = [validate_master_server(a) for a in config.master_servers]
    config.auto_refresh_minutes = validate_refresh_minutes(config.auto_refresh_minutes)
    config.max_concurrent_queries = validate_concurrency(config.max_concurrent_queries)
    config.query_timeout = validate_timeout(config.query_timeout)
    config.log_level = validate_log_level(config.log_level)


def log_level_value(level: str) -> int:
    """Numeric logging level for a validated level name"""
    return getattr(logging, validate_log_level(level))
