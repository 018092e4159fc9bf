"""Exception taxonomy for token issuance, verification and local probing."""

from __future__ import annotations

from typing import Optional


class ActivationError(Exception):
    """Base class for every error raised by this package."""


class InvalidKeyError(ActivationError):
    """PEM key material could not be parsed or is not an acceptable RSA key."""


class SigningError(ActivationError):
    """The private-key signing operation failed."""


class MalformedTokenError(ActivationError):
    """A token artifact is structurally invalid."""

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class IdentityUnavailableError(ActivationError):
    """No machine identity strategy produced a value on this host."""


class VerificationError(ActivationError):
    """A token failed one of the verification steps.

    ``kind`` is the :class:`~offline_activation.token.types.VerificationFailure`
    that stopped the sequence and ``field`` names the offending token field
    when one applies.
    """

    def __init__(self, kind: str, *, field: Optional[str] = None) -> None:
        label = getattr(kind, "value", kind)
        detail = f"{label} ({field})" if field else str(label)
        super().__init__(f"token verification failed: {detail}")
        self.kind = kind
        self.field = field


class LedgerError(ActivationError):
    """The issuance ledger could not record a token."""
