"""Print the local values an issuer needs to bind a token to this machine."""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

from ..errors import IdentityUnavailableError
from ..fingerprint.providers import ExecutableFingerprintProvider, FileFingerprintProvider
from ..identity.providers import detect_identity_provider
from .common import add_verbose_flag, configure_logging


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Show this machine's identity and program fingerprint")
    parser.add_argument("--program-file", help="Hash this file instead of the running executable")
    add_verbose_flag(parser)
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    fingerprint_provider = (
        FileFingerprintProvider(args.program_file) if args.program_file else ExecutableFingerprintProvider()
    )
    try:
        machine_id = detect_identity_provider().identify()
        program_hash = fingerprint_provider.fingerprint()
    except IdentityUnavailableError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"error: unable to hash program: {exc}", file=sys.stderr)
        return 1

    print(f"machine id: {machine_id}")
    print(f"program hash: {program_hash}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
