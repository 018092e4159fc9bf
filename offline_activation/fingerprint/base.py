"""Program fingerprint capability interface."""

from __future__ import annotations

from abc import ABC, abstractmethod


class ProgramFingerprintProvider(ABC):
    """Abstract source of the SHA-256 fingerprint of a program build."""

    @abstractmethod
    def fingerprint(self) -> str:
        """Return the lower-case hex digest; ``OSError`` propagates."""
