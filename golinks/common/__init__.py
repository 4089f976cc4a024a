"""Common utilities for the go links registry."""

from .validators import is_valid_key, is_valid_target, normalize_target
from .url_builder import build_short_url, public_base_url
from .logging_config import setup_logging

__all__ = [
    "is_valid_key",
    "is_valid_target",
    "normalize_target",
    "build_short_url",
    "public_base_url",
    "setup_logging",
]
