"""Environment-driven configuration for the activation tools."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .ledger.base import InMemoryLedger, IssuanceLedger
from .store.storage import STORE_PATH_ENV, FileActivationStore, default_activation_path

PUBLIC_KEY_ENV = "OFFLINE_ACTIVATION_PUBLIC_KEY"
RECHECK_ENV = "OFFLINE_ACTIVATION_RECHECK"
LEDGER_DSN_ENV = "OFFLINE_ACTIVATION_LEDGER_DSN"

_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class ActivationConfig:
    """Locations and policy shared by the issuer and verifier entry points."""

    store_path: Path
    public_key_path: Optional[Path] = None
    recheck: bool = True
    ledger_dsn: Optional[str] = None

    @classmethod
    def from_env(cls) -> "ActivationConfig":
        store_path = os.getenv(STORE_PATH_ENV)
        public_key = os.getenv(PUBLIC_KEY_ENV)
        return cls(
            store_path=Path(store_path) if store_path else default_activation_path(),
            public_key_path=Path(public_key) if public_key else None,
            recheck=os.getenv(RECHECK_ENV, "1").strip().lower() not in _FALSE_VALUES,
            ledger_dsn=os.getenv(LEDGER_DSN_ENV) or os.getenv("DATABASE_URL"),
        )

    def build_store(self) -> FileActivationStore:
        return FileActivationStore(self.store_path)

    def build_ledger(self) -> IssuanceLedger:
        """Return a Postgres ledger when a DSN is configured, otherwise in-memory."""
        if self.ledger_dsn:
            from .ledger.postgres import PostgresLedger

            return PostgresLedger(dsn=self.ledger_dsn)
        return InMemoryLedger()
