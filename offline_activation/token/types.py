"""Activation token datatypes."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from ..errors import VerificationError

TOKEN_FIELDS = ("machine_id", "program_hash", "expiry", "extra", "signature")


@dataclass(frozen=True)
class Token:
    """Signed activation artifact binding a machine and a program build to an expiry."""

    machine_id: str
    program_hash: str
    expiry: str
    extra: str = ""
    signature: str = ""

    def unsigned(self) -> "Token":
        """Return a copy with the signature cleared, as it is signed and verified."""
        return replace(self, signature="")


class VerificationFailure(str, Enum):
    """Reason a verification attempt stopped, in check order."""

    MALFORMED_TOKEN = "malformed_token"
    SIGNATURE_INVALID = "signature_invalid"
    EXPIRED = "expired"
    FINGERPRINT_MISMATCH = "fingerprint_mismatch"
    MACHINE_MISMATCH = "machine_mismatch"
    IDENTITY_UNAVAILABLE = "identity_unavailable"
    IO_ERROR = "io_error"


@dataclass(frozen=True)
class IssuedToken:
    token: Token
    token_bytes: bytes
    token_digest: str
    issued_at: datetime


@dataclass(frozen=True)
class VerificationResult:
    valid: bool
    reason: Union[VerificationFailure, str]
    field: Optional[str] = None
    token: Optional[Token] = None

    @classmethod
    def ok(cls, token: Token) -> "VerificationResult":
        return cls(True, "ok", token=token)

    @classmethod
    def failed(cls, reason: VerificationFailure, field: Optional[str] = None) -> "VerificationResult":
        return cls(False, reason, field=field)

    def raise_for_failure(self) -> None:
        """Raise :class:`VerificationError` when this result is a failure."""
        if not self.valid:
            raise VerificationError(self.reason, field=self.field)
