"""Utility helpers for hashing and time operations."""

from .hashing import is_sha256_hex, sha256_file, sha256_hex
from .time import format_rfc3339, parse_rfc3339, utc_now

__all__ = ["sha256_hex", "sha256_file", "is_sha256_hex", "utc_now", "parse_rfc3339", "format_rfc3339"]
