"""PEM key loading for the issuer and verifier roles."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from ..errors import InvalidKeyError

MIN_KEY_BITS = 2048


def _check_size(key_size: int) -> None:
    if key_size < MIN_KEY_BITS:
        raise InvalidKeyError(f"RSA key is {key_size} bits; at least {MIN_KEY_BITS} required")


def load_private_key(pem: bytes, password: Optional[bytes] = None) -> rsa.RSAPrivateKey:
    """Load a PEM RSA private key (PKCS#8, or traditional PKCS#1)."""
    try:
        key = serialization.load_pem_private_key(pem, password=password)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise InvalidKeyError(f"unable to parse private key: {exc}") from exc

    if not isinstance(key, rsa.RSAPrivateKey):
        raise InvalidKeyError(f"private key is {type(key).__name__}, expected RSA")
    _check_size(key.key_size)
    return key


def load_public_key(pem: bytes) -> rsa.RSAPublicKey:
    """Load a PEM SubjectPublicKeyInfo RSA public key."""
    try:
        key = serialization.load_pem_public_key(pem)
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise InvalidKeyError(f"unable to parse public key: {exc}") from exc

    if not isinstance(key, rsa.RSAPublicKey):
        raise InvalidKeyError(f"public key is {type(key).__name__}, expected RSA")
    _check_size(key.key_size)
    return key


def read_key_file(path: Union[str, Path]) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        raise InvalidKeyError(f"unable to read key file {path}: {exc}") from exc
