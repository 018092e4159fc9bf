"""SHA-256 helpers for program fingerprints and token digests."""

from __future__ import annotations

import hashlib
import re
from pathlib import Path
from typing import Union

_CHUNK_SIZE = 1024 * 1024
_SHA256_HEX_RE = re.compile(r"^[0-9a-fA-F]{64}$")


def sha256_hex(value: bytes) -> str:
    """Return the lower-case SHA-256 hex digest of ``value``."""
    return hashlib.sha256(value).hexdigest()


def sha256_file(path: Union[str, Path]) -> str:
    """Stream a file from disk and return its lower-case SHA-256 hex digest."""
    digest = hashlib.sha256()
    with open(path, "rb") as handle:
        for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def is_sha256_hex(value: str) -> bool:
    """Return True when ``value`` looks like a SHA-256 hex digest."""
    return bool(_SHA256_HEX_RE.match(value))
