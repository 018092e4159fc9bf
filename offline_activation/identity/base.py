"""Machine identity capability interface."""

from __future__ import annotations

from abc import ABC, abstractmethod


class MachineIdentityProvider(ABC):
    """Abstract source of a stable identifier for the current host."""

    #: Short label used in logs and the probe command output.
    name = "machine-identity"

    @abstractmethod
    def identify(self) -> str:
        """Return the host identity or raise ``IdentityUnavailableError``."""
