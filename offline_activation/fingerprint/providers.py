"""Program fingerprint providers."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Union

from ..utils.hashing import sha256_file
from .base import ProgramFingerprintProvider


class FileFingerprintProvider(ProgramFingerprintProvider):
    """Hash a specific file, e.g. the binary an issuer is about to distribute."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def fingerprint(self) -> str:
        return sha256_file(self.path)


def running_executable() -> Path:
    """Return the on-disk image of the running program.

    Frozen bundles run from ``sys.executable``; a plain interpreter run is
    identified by its entry script.
    """
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve()
    entry = sys.argv[0] if sys.argv and sys.argv[0] else sys.executable
    return Path(entry).resolve()


class ExecutableFingerprintProvider(FileFingerprintProvider):
    """Hash the currently running executable image."""

    def __init__(self) -> None:
        super().__init__(running_executable())


class StaticFingerprintProvider(ProgramFingerprintProvider):
    def __init__(self, value: str) -> None:
        self.value = value

    def fingerprint(self) -> str:
        return self.value
