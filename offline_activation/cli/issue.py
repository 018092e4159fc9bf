"""Issue a signed activation token file."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from ..config import ActivationConfig
from ..errors import InvalidKeyError, LedgerError, SigningError
from ..fingerprint.providers import FileFingerprintProvider
from ..ledger.base import IssuanceLedger, LedgerEntry
from ..token.issuer import TokenSigner
from ..token.types import IssuedToken
from ..utils.hashing import is_sha256_hex
from ..utils.time import parse_rfc3339
from .common import add_verbose_flag, configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Issue a machine-bound activation token")
    parser.add_argument("--private", default="private.pem", help="PEM private key path")
    parser.add_argument("--password-env", help="Environment variable holding the private key passphrase")
    parser.add_argument("--machine-id", required=True, help="Machine identity to bind")
    program = parser.add_mutually_exclusive_group(required=True)
    program.add_argument("--program-hash", help="SHA-256 hex digest of the program binary")
    program.add_argument("--program-file", help="Program binary to hash")
    parser.add_argument("--expiry", required=True, help="Expiry as RFC3339, e.g. 2026-12-31T23:59:59Z")
    parser.add_argument("--extra", default="", help="Opaque extra data carried in the token")
    parser.add_argument("--out", default="token.json", help="Output token file")
    add_verbose_flag(parser)
    return parser


async def _record(ledger: IssuanceLedger, issued: IssuedToken) -> None:
    try:
        await ledger.record(LedgerEntry.from_issued(issued))
    finally:
        await ledger.close()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    config = ActivationConfig.from_env()

    try:
        parse_rfc3339(args.expiry)
    except ValueError as exc:
        parser.error(f"invalid --expiry: {exc}")
    if not args.machine_id:
        parser.error("--machine-id must not be empty")

    if args.program_file:
        try:
            program_hash = FileFingerprintProvider(args.program_file).fingerprint()
        except OSError as exc:
            parser.error(f"unable to hash --program-file: {exc}")
    else:
        program_hash = args.program_hash
        if not is_sha256_hex(program_hash):
            parser.error("--program-hash must be a 64 character SHA-256 hex digest")

    password = None
    if args.password_env:
        secret = os.getenv(args.password_env)
        if secret is None:
            parser.error(f"environment variable {args.password_env} is not set")
        password = secret.encode("utf-8")

    try:
        signer = TokenSigner.from_file(args.private, password=password)
        issued = signer.sign(
            machine_id=args.machine_id,
            program_hash=program_hash,
            expiry=args.expiry,
            extra=args.extra,
        )
    except (InvalidKeyError, SigningError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    ledger = config.build_ledger()
    try:
        asyncio.run(_record(ledger, issued))
    except LedgerError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    logger.info("recorded token %s in %s", issued.token_digest[:16], type(ledger).__name__)

    out = Path(args.out)
    try:
        out.write_bytes(issued.token_bytes)
    except OSError as exc:
        print(f"error: unable to write {out}: {exc}", file=sys.stderr)
        return 1

    print(f"machine id: {issued.token.machine_id}")
    print(f"program hash: {issued.token.program_hash}")
    print(f"expiry: {issued.token.expiry}")
    print(f"token written to {out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
