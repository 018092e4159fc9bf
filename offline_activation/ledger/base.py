"""Issuance ledger interface and in-memory backend."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Dict

from ..token.types import IssuedToken


@dataclass(frozen=True)
class LedgerEntry:
    """Issuer-side record of one issued token.

    Holds the signed field values and a digest of the token; the signature
    itself is never stored.
    """

    token_digest: str
    machine_id: str
    program_hash: str
    expiry: str
    extra: str
    issued_at: datetime

    @classmethod
    def from_issued(cls, issued: IssuedToken) -> "LedgerEntry":
        token = issued.token
        return cls(
            token_digest=issued.token_digest,
            machine_id=token.machine_id,
            program_hash=token.program_hash,
            expiry=token.expiry,
            extra=token.extra,
            issued_at=issued.issued_at,
        )


class IssuanceLedger(ABC):
    """Abstract backend recording which tokens an issuer has produced."""

    @abstractmethod
    async def record(self, entry: LedgerEntry) -> None:
        """Persist one entry; recording the same digest twice is a no-op."""

    async def close(self) -> None:
        """Close backend resources if needed."""


class InMemoryLedger(IssuanceLedger):
    def __init__(self) -> None:
        self.entries: Dict[str, LedgerEntry] = {}

    async def record(self, entry: LedgerEntry) -> None:
        self.entries.setdefault(entry.token_digest, entry)

