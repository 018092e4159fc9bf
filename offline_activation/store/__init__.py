"""Local activation record storage."""

from .storage import (
    ActivationStore,
    FileActivationStore,
    InMemoryActivationStore,
    default_activation_path,
)

__all__ = [
    "ActivationStore",
    "FileActivationStore",
    "InMemoryActivationStore",
    "default_activation_path",
]
