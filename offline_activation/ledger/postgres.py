"""PostgreSQL issuance ledger."""

from __future__ import annotations

from typing import Optional

import asyncpg

from ..errors import LedgerError
from .base import IssuanceLedger, LedgerEntry

CREATE_SQL = """
CREATE TABLE IF NOT EXISTS issued_tokens (
    token_digest TEXT PRIMARY KEY,
    machine_id TEXT NOT NULL,
    program_hash TEXT NOT NULL,
    expiry TEXT NOT NULL,
    extra TEXT NOT NULL,
    issued_at TIMESTAMPTZ NOT NULL
)
"""

INSERT_SQL = """
INSERT INTO issued_tokens (token_digest, machine_id, program_hash, expiry, extra, issued_at)
VALUES ($1, $2, $3, $4, $5, $6)
ON CONFLICT (token_digest) DO NOTHING
"""

_DRIVER_ERRORS = (OSError, asyncpg.PostgresError, asyncpg.InterfaceError)


class PostgresLedger(IssuanceLedger):
    """Ledger that persists issued tokens into PostgreSQL using ``asyncpg``."""

    def __init__(
        self,
        dsn: Optional[str] = None,
        *,
        pool: Optional[asyncpg.Pool] = None,
        min_size: int = 1,
        max_size: int = 4,
    ) -> None:
        self._dsn = dsn
        self._pool = pool
        self._min_size = min_size
        self._max_size = max_size
        self._schema_ready = False

    async def connect(self) -> None:
        """Initialize a connection pool if one was not supplied, and the table."""
        if self._pool is None:
            if not self._dsn:
                raise ValueError("Either `dsn` or `pool` must be provided for PostgresLedger.")
            try:
                self._pool = await asyncpg.create_pool(
                    dsn=self._dsn,
                    min_size=self._min_size,
                    max_size=self._max_size,
                )
            except _DRIVER_ERRORS as exc:
                raise LedgerError(f"unable to connect to ledger database: {exc}") from exc

        if not self._schema_ready:
            try:
                async with self._pool.acquire() as conn:
                    await conn.execute(CREATE_SQL)
            except _DRIVER_ERRORS as exc:
                raise LedgerError(f"unable to prepare ledger table: {exc}") from exc
            self._schema_ready = True

    async def record(self, entry: LedgerEntry) -> None:
        await self.connect()
        assert self._pool is not None
        try:
            async with self._pool.acquire() as conn:
                await conn.execute(
                    INSERT_SQL,
                    entry.token_digest,
                    entry.machine_id,
                    entry.program_hash,
                    entry.expiry,
                    entry.extra,
                    entry.issued_at,
                )
        except _DRIVER_ERRORS as exc:
            raise LedgerError(f"unable to record token: {exc}") from exc

    async def close(self) -> None:
        """Close the underlying pool if it exists."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            self._schema_ready = False
