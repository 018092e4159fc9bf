"""Storage backends for the local activation record."""

from __future__ import annotations

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

STORE_PATH_ENV = "OFFLINE_ACTIVATION_STORE_PATH"
DEFAULT_RECORD_NAME = "offline_activation.json"
RECORD_MODE = 0o600


def default_activation_path() -> Path:
    """Return the activation record location in the platform temp directory."""
    return Path(tempfile.gettempdir()) / DEFAULT_RECORD_NAME


class ActivationStore(ABC):
    """Durable holder of one activation record."""

    @abstractmethod
    def persist(self, token_bytes: bytes) -> None:
        """Store a copy of an accepted token, replacing any previous record."""

    @abstractmethod
    def load(self) -> Optional[bytes]:
        """Return the stored token bytes, or None when not activated."""

    @abstractmethod
    def clear(self) -> None:
        """Remove the activation record if present."""

    def is_activated(self) -> bool:
        """Return True if an activation record exists."""
        return self.load() is not None


class InMemoryActivationStore(ActivationStore):
    """Process-local store for tests and embedded hosts."""

    def __init__(self) -> None:
        self.record: Optional[bytes] = None

    def persist(self, token_bytes: bytes) -> None:
        self.record = bytes(token_bytes)

    def load(self) -> Optional[bytes]:
        return self.record

    def clear(self) -> None:
        self.record = None


class FileActivationStore(ActivationStore):
    """Activation record kept in a single owner-only file.

    Writes go to a temporary file in the same directory which is then renamed
    over the record, so readers never observe a partial write.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def persist(self, token_bytes: bytes) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(token_bytes)
                handle.flush()
                os.fsync(handle.fileno())
            os.chmod(tmp_name, RECORD_MODE)
            os.replace(tmp_name, self.path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
        logger.debug("activation record written to %s", self.path)

    def load(self) -> Optional[bytes]:
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None

    def is_activated(self) -> bool:
        return self.path.is_file()

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            return
        logger.info("activation record removed from %s", self.path)
