"""Activation token issuance and verification."""

from .canonical import canonical_payload, dump_token, load_token
from .issuer import TokenSigner
from .types import IssuedToken, Token, VerificationFailure, VerificationResult
from .verifier import TokenVerifier

__all__ = [
    "TokenSigner",
    "TokenVerifier",
    "Token",
    "IssuedToken",
    "VerificationFailure",
    "VerificationResult",
    "canonical_payload",
    "dump_token",
    "load_token",
]
