"""Offline activation package.

Issue RSA-PSS signed activation tokens bound to a machine identity, a program
build fingerprint and an expiry, and verify them offline with only the public
key.
"""

from .config import ActivationConfig
from .errors import (
    ActivationError,
    IdentityUnavailableError,
    InvalidKeyError,
    LedgerError,
    MalformedTokenError,
    SigningError,
    VerificationError,
)
from .token import Token, TokenSigner, TokenVerifier, VerificationFailure, VerificationResult

__all__ = [
    "ActivationConfig",
    "ActivationError",
    "IdentityUnavailableError",
    "InvalidKeyError",
    "LedgerError",
    "MalformedTokenError",
    "SigningError",
    "VerificationError",
    "Token",
    "TokenSigner",
    "TokenVerifier",
    "VerificationFailure",
    "VerificationResult",
]
