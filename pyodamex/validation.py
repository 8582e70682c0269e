"""
Input validation and sanitization for network addresses, file paths, free text and URLs.

Every function here is pure: no I/O, no exceptions. Callers branch on
``result.valid`` and surface ``result.error`` to the user.

Bracketed IPv6 literals ("[::1]:10666") are not accepted by
validate_server_address: the address must contain exactly one colon.
"""

import math
import re
import sys
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Union
from urllib.parse import urlsplit


# =============================================================================
# Results
# =============================================================================

@dataclass(frozen=True)
class Valid:
    """Input passed validation; ``sanitized`` is the value to use."""
    sanitized: str

    @property
    def valid(self) -> bool:
        return True

    @property
    def error(self) -> None:
        return None


@dataclass(frozen=True)
class ValidAddress(Valid):
    """A validated ``host:port`` string with its parsed parts."""
    ip: str = ""
    port: int = 0


@dataclass(frozen=True)
class Invalid:
    """Input failed validation; ``error`` says why."""
    error: str

    @property
    def valid(self) -> bool:
        return False

    @property
    def sanitized(self) -> None:
        return None


ValidationResult = Union[Valid, Invalid]


# =============================================================================
# Patterns
# =============================================================================

IPV4_PATTERN = re.compile(r"([0-9]{1,3})\.([0-9]{1,3})\.([0-9]{1,3})\.([0-9]{1,3})")
HOSTNAME_PATTERN = re.compile(
    r"[a-zA-Z0-9]([a-zA-Z0-9-]*[a-zA-Z0-9])?(\.[a-zA-Z0-9]([a-zA-Z0-9-]*[a-zA-Z0-9])?)*"
)
MAX_HOSTNAME_LENGTH = 253

PORT_PREFIX_PATTERN = re.compile(r"[+-]?[0-9]+")
MIN_PORT = 1
MAX_PORT = 65535
MAX_PORT_DIGITS = len(str(MAX_PORT))

WINDOWS_ILLEGAL_CHARS = re.compile(r'[<>"|?*]')
CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B-\x0C\x0E-\x1F\x7F]")

DEFAULT_TEXT_LENGTH = 1000
DEFAULT_URL_PROTOCOLS = ("http", "https")

# Schemes that cannot be parsed without a host
NETWORK_SCHEMES = frozenset(["http", "https", "ftp", "ws", "wss"])


# =============================================================================
# Network addresses
# =============================================================================

def validate_ip_address(ip: Any) -> ValidationResult:
    """Validate an IPv4 address or hostname.

    Dotted quads must have every octet in 0-255. Anything else is checked
    as a hostname (alphanumeric-bounded labels, interior hyphens, at most
    253 characters). The sanitized value is the trimmed input, unchanged.
    """
    if not ip or not isinstance(ip, str):
        return Invalid("IP address is required")

    sanitized = ip.strip()
    if not sanitized:
        return Invalid("IP address is required")

    match = IPV4_PATTERN.fullmatch(sanitized)
    if match:
        if all(0 <= int(octet) <= 255 for octet in match.groups()):
            return Valid(sanitized)
        return Invalid("Invalid IPv4 address (octets must be 0-255)")

    if len(sanitized) <= MAX_HOSTNAME_LENGTH and HOSTNAME_PATTERN.fullmatch(sanitized):
        return Valid(sanitized)

    return Invalid("Invalid IP address or hostname")


def _parse_port(port: Any) -> Optional[float]:
    """Turn a port argument into a number, or None if it isn't one."""
    if isinstance(port, bool):
        return None
    if isinstance(port, int):
        return port
    if isinstance(port, float):
        return None if math.isnan(port) else port
    if isinstance(port, str):
        # Leading integer prefix, as "8080/udp" -> 8080
        match = PORT_PREFIX_PATTERN.match(port.strip())
        if not match:
            return None
        digits = match.group(0)
        # Too many significant digits for any port; skip the int() conversion
        if len(digits.lstrip("+-").lstrip("0")) > MAX_PORT_DIGITS:
            return -math.inf if digits.startswith("-") else math.inf
        return int(digits)
    return None


def validate_port(port: Union[int, float, str]) -> ValidationResult:
    """Validate a port given as a number or numeric string.

    Fractional values are truncated. The sanitized value is the decimal
    string of the integer port.
    """
    number = _parse_port(port)
    if number is None:
        return Invalid("Port must be a number")

    if number < MIN_PORT or number > MAX_PORT:
        return Invalid(f"Port must be between {MIN_PORT} and {MAX_PORT}")

    return Valid(str(int(number)))


def validate_server_address(address: Any) -> ValidationResult:
    """Validate a ``host:port`` server address.

    Returns a ValidAddress carrying ``ip`` and the numeric ``port`` on
    success. Error messages from the host and port checks are prefixed
    with "Invalid address: " and "Invalid port: ".
    """
    if not address or not isinstance(address, str):
        return Invalid("Server address is required")

    sanitized = address.strip()
    parts = sanitized.split(":")

    if len(parts) != 2:
        return Invalid("Server address must be in format IP:port or hostname:port")

    host_part, port_part = parts

    host_result = validate_ip_address(host_part)
    if not host_result.valid:
        return Invalid(f"Invalid address: {host_result.error}")

    port_result = validate_port(port_part)
    if not port_result.valid:
        return Invalid(f"Invalid port: {port_result.error}")

    return ValidAddress(
        sanitized=sanitized,
        ip=host_result.sanitized,
        port=int(port_result.sanitized),
    )


# =============================================================================
# File system
# =============================================================================

def sanitize_file_path(file_path: Any, platform: Optional[str] = None) -> ValidationResult:
    """Reject file paths that could escape their intended directory.

    The traversal check is a plain substring test for ".." and "~". The
    Windows illegal-character check runs when ``platform`` (default:
    the running interpreter's ``sys.platform``) is "win32".
    """
    if not file_path or not isinstance(file_path, str):
        return Invalid("File path is required")

    sanitized = file_path.strip()

    if ".." in sanitized or "~" in sanitized:
        return Invalid("Invalid file path (directory traversal not allowed)")

    if "\0" in sanitized:
        return Invalid("Invalid file path (null byte detected)")

    if (platform or sys.platform) == "win32" and WINDOWS_ILLEGAL_CHARS.search(sanitized):
        return Invalid("Invalid file path (contains illegal characters)")

    return Valid(sanitized)


# =============================================================================
# Text and URLs
# =============================================================================

def sanitize_text(text: Any, max_length: int = DEFAULT_TEXT_LENGTH) -> str:
    """Trim, truncate to ``max_length`` and strip control characters.

    Tabs and newlines survive. Truncation happens first, so the result
    may be shorter than ``max_length`` once characters are stripped.
    """
    if not text or not isinstance(text, str):
        return ""

    sanitized = text.strip()
    max_length = max(max_length, 0)
    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    return CONTROL_CHARS.sub("", sanitized)


def validate_url(url: Any, allowed_protocols: Iterable[str] = DEFAULT_URL_PROTOCOLS) -> ValidationResult:
    """Validate a URL and restrict it to ``allowed_protocols``.

    The sanitized value is the trimmed input, not a re-serialized URL.
    """
    if not url or not isinstance(url, str):
        return Invalid("URL is required")

    allowed = list(allowed_protocols)
    sanitized = url.strip()

    try:
        parsed = urlsplit(sanitized)
        # Accessing .port validates the port range
        parsed.port
    except ValueError:
        return Invalid("Invalid URL format")

    scheme = parsed.scheme.lower()
    if not scheme:
        return Invalid("Invalid URL format")
    # "http:example.com" parses with an empty netloc; web URLs must name a host
    if scheme in NETWORK_SCHEMES and not parsed.hostname:
        return Invalid("Invalid URL format")
    if parsed.hostname and any(ch.isspace() for ch in parsed.hostname):
        return Invalid("Invalid URL format")

    if scheme not in allowed:
        return Invalid(f"Protocol must be one of: {', '.join(allowed)}")

    return Valid(sanitized)
