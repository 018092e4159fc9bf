"""RSA-PSS activation token issuer."""

from __future__ import annotations

import base64
import hashlib
import logging
from pathlib import Path
from typing import Optional, Union

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa, utils

from ..errors import SigningError
from ..utils.hashing import is_sha256_hex
from ..utils.time import parse_rfc3339, utc_now
from .canonical import canonical_payload, dump_token, token_digest
from .keys import load_private_key, read_key_file
from .types import IssuedToken, Token

logger = logging.getLogger(__name__)

PSS_PADDING = padding.PSS(mgf=padding.MGF1(hashes.SHA256()), salt_length=padding.PSS.DIGEST_LENGTH)


class TokenSigner:
    """Issue signed activation tokens bound to a machine, a program build and an expiry."""

    def __init__(self, private_key: rsa.RSAPrivateKey) -> None:
        self._private_key = private_key

    @classmethod
    def from_pem(cls, pem: bytes, password: Optional[bytes] = None) -> "TokenSigner":
        return cls(load_private_key(pem, password=password))

    @classmethod
    def from_file(cls, path: Union[str, Path], password: Optional[bytes] = None) -> "TokenSigner":
        return cls.from_pem(read_key_file(path), password=password)

    def sign(
        self,
        *,
        machine_id: str,
        program_hash: str,
        expiry: str,
        extra: str = "",
    ) -> IssuedToken:
        if not machine_id:
            raise ValueError("machine_id must not be empty")
        if not is_sha256_hex(program_hash):
            raise ValueError("program_hash must be a 64 character SHA-256 hex digest")
        parse_rfc3339(expiry)

        unsigned = Token(
            machine_id=machine_id,
            program_hash=program_hash.lower(),
            expiry=expiry,
            extra=extra,
        )
        digest = hashlib.sha256(canonical_payload(unsigned)).digest()
        try:
            signature = self._private_key.sign(digest, PSS_PADDING, utils.Prehashed(hashes.SHA256()))
        except Exception as exc:
            raise SigningError(f"signing failed: {exc}") from exc

        token = Token(
            machine_id=unsigned.machine_id,
            program_hash=unsigned.program_hash,
            expiry=unsigned.expiry,
            extra=unsigned.extra,
            signature=base64.b64encode(signature).decode("ascii"),
        )
        issued = IssuedToken(
            token=token,
            token_bytes=dump_token(token),
            token_digest=token_digest(token),
            issued_at=utc_now(),
        )
        logger.info("issued token %s expiring %s", issued.token_digest[:16], expiry)
        return issued
