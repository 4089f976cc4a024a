"""Validation utilities for go link keys and targets."""

import re
from urllib.parse import urlsplit
from typing import Tuple


MAX_KEY_LENGTH = 64
MAX_TARGET_LENGTH = 2048
ALLOWED_SCHEMES = ("http", "https")

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")
# "scheme://..." at the very start of the string
_AUTHORITY_SCHEME = re.compile(r"^([A-Za-z][A-Za-z0-9+.-]*)://")
# "mailto:x", "javascript:x"; "host:8080/path" is a port, not a scheme
_OPAQUE_SCHEME = re.compile(r"^([A-Za-z][A-Za-z0-9+.-]*):(?!\d)")


def is_valid_key(key: str) -> Tuple[bool, str]:
    """Validate a go link key.

    Args:
        key: The key to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not key or not isinstance(key, str):
        return False, "Key is required"

    if len(key) > MAX_KEY_LENGTH:
        return False, f"Key must be at most {MAX_KEY_LENGTH} characters"

    if not _KEY_PATTERN.match(key):
        return False, (
            "Key must start with a letter or number and contain only "
            "letters, numbers, dots, hyphens, and underscores"
        )

    return True, ""


def is_valid_target(target: str) -> Tuple[bool, str]:
    """Validate a target URL.

    Targets may carry an explicit http/https scheme or be a bare
    host/path such as ``example.com/docs``. Scheme detection looks only at
    the start of the string.

    Args:
        target: The target to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not target or not isinstance(target, str) or not target.strip():
        return False, "URL is required"

    if len(target) > MAX_TARGET_LENGTH:
        return False, f"URL is too long (max {MAX_TARGET_LENGTH} characters)"

    if any(ch.isspace() for ch in target):
        return False, "URL must not contain whitespace"

    match = _AUTHORITY_SCHEME.match(target)
    if match is None:
        opaque = _OPAQUE_SCHEME.match(target)
        if opaque is not None:
            return False, f"Unsupported URL scheme '{opaque.group(1).lower()}'"
    elif match.group(1).lower() not in ALLOWED_SCHEMES:
        return False, "URL must use http or https protocol"

    try:
        parsed = urlsplit(normalize_target(target))
    except ValueError as e:
        return False, f"Invalid URL format: {e}"

    if not parsed.hostname:
        return False, "URL must have a valid domain"

    return True, ""


def has_http_scheme(target: str) -> bool:
    """True when ``target`` starts with ``http://`` or ``https://``."""
    match = _AUTHORITY_SCHEME.match(target)
    return match is not None and match.group(1).lower() in ALLOWED_SCHEMES


def normalize_target(target: str) -> str:
    """Return the redirect location for a stored target.

    Bare host/path targets get an ``http://`` prefix; targets that already
    start with an http(s) scheme are returned unchanged.
    """
    if has_http_scheme(target):
        return target
    return f"http://{target}"
