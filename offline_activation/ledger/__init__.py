"""Issuer-side ledger of issued activation tokens."""

from .base import InMemoryLedger, IssuanceLedger, LedgerEntry

__all__ = ["IssuanceLedger", "InMemoryLedger", "LedgerEntry", "PostgresLedger"]


def __getattr__(name: str):
    if name == "PostgresLedger":
        from .postgres import PostgresLedger

        return PostgresLedger
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
