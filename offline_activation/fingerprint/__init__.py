"""Program fingerprint providers."""

from .base import ProgramFingerprintProvider
from .providers import (
    ExecutableFingerprintProvider,
    FileFingerprintProvider,
    StaticFingerprintProvider,
    running_executable,
)

__all__ = [
    "ProgramFingerprintProvider",
    "ExecutableFingerprintProvider",
    "FileFingerprintProvider",
    "StaticFingerprintProvider",
    "running_executable",
]
