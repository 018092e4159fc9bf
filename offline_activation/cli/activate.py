"""Verify a token file and activate this machine."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from ..config import ActivationConfig
from ..errors import InvalidKeyError
from ..fingerprint.providers import ExecutableFingerprintProvider
from ..identity.providers import detect_identity_provider
from ..token.verifier import TokenVerifier
from .common import add_verbose_flag, configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Activate this machine with a signed token")
    parser.add_argument("token", nargs="?", help="Token file path")
    parser.add_argument("--public", help="PEM public key path (default: $OFFLINE_ACTIVATION_PUBLIC_KEY)")
    parser.add_argument("--store", help="Activation record path (default: $OFFLINE_ACTIVATION_STORE_PATH)")
    parser.add_argument(
        "--recheck",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Re-verify an existing activation record instead of trusting its presence",
    )
    add_verbose_flag(parser)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    config = ActivationConfig.from_env()
    if args.store:
        config.store_path = Path(args.store)
    if args.recheck is not None:
        config.recheck = args.recheck
    public_key = Path(args.public) if args.public else config.public_key_path
    if public_key is None:
        parser.error("a public key is required (--public or OFFLINE_ACTIVATION_PUBLIC_KEY)")

    try:
        verifier = TokenVerifier.from_file(
            public_key,
            identity_provider=detect_identity_provider(),
            fingerprint_provider=ExecutableFingerprintProvider(),
            store=config.build_store(),
        )
    except InvalidKeyError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if verifier.is_activated(recheck=config.recheck):
        print("already activated")
        return 0

    if not args.token:
        print("No token file provided. Usage: offline-activation-activate <token.json>")
        return 1

    result = verifier.verify_file(args.token)
    if not result.valid:
        reason = getattr(result.reason, "value", result.reason)
        detail = f" ({result.field})" if result.field else ""
        print(f"activation failed: {reason}{detail}")
        return 1

    print("activation success")
    return 0


if __name__ == "__main__":
    sys.exit(main())
