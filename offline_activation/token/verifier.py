"""Offline activation token verification and activation state."""

from __future__ import annotations

import base64
import binascii
import hashlib
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import rsa, utils

from ..errors import IdentityUnavailableError, MalformedTokenError
from ..fingerprint.base import ProgramFingerprintProvider
from ..identity.base import MachineIdentityProvider
from ..store.storage import ActivationStore
from ..utils.time import parse_rfc3339, utc_now
from .canonical import canonical_payload, load_token
from .issuer import PSS_PADDING
from .keys import load_public_key, read_key_file
from .types import Token, VerificationFailure, VerificationResult

logger = logging.getLogger(__name__)


class TokenVerifier:
    """Verify activation tokens and record successful activations.

    Checks run in a fixed order and stop at the first failure: structure,
    signature, expiry, program fingerprint, machine identity. Nothing in the
    token is trusted before the signature check passes.
    """

    def __init__(
        self,
        public_key: rsa.RSAPublicKey,
        *,
        identity_provider: MachineIdentityProvider,
        fingerprint_provider: ProgramFingerprintProvider,
        store: ActivationStore,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._public_key = public_key
        self.identity_provider = identity_provider
        self.fingerprint_provider = fingerprint_provider
        self.store = store
        self._clock = clock

    @classmethod
    def from_pem(cls, pem: bytes, **kwargs) -> "TokenVerifier":
        return cls(load_public_key(pem), **kwargs)

    @classmethod
    def from_file(cls, path: Union[str, Path], **kwargs) -> "TokenVerifier":
        return cls.from_pem(read_key_file(path), **kwargs)

    def verify(self, token_bytes: bytes) -> VerificationResult:
        """Run the full sequence and persist the activation record on success."""
        result = self.check(token_bytes)
        if not result.valid:
            return result

        try:
            self.store.persist(token_bytes)
        except OSError as exc:
            logger.error("activation record could not be written: %s", exc.strerror or type(exc).__name__)
            return VerificationResult.failed(VerificationFailure.IO_ERROR)

        logger.info("activation recorded")
        return result

    def verify_file(self, path: Union[str, Path]) -> VerificationResult:
        try:
            token_bytes = Path(path).read_bytes()
        except OSError as exc:
            logger.error("token file could not be read: %s", exc.strerror or type(exc).__name__)
            return VerificationResult.failed(VerificationFailure.IO_ERROR)
        return self.verify(token_bytes)

    def check(self, token_bytes: bytes) -> VerificationResult:
        """Run every verification step without touching the activation record."""
        result = self._check(token_bytes)
        if not result.valid:
            logger.warning(
                "token rejected: %s%s",
                result.reason.value if isinstance(result.reason, VerificationFailure) else result.reason,
                f" ({result.field})" if result.field else "",
            )
        return result

    def is_activated(self, *, recheck: bool = True) -> bool:
        """Return whether a usable activation record exists.

        With ``recheck`` the stored token is verified again, so an activation
        whose token has since expired, or that was copied from another host,
        no longer counts. Without it, presence of the record is enough.
        """
        if not recheck:
            return self.store.is_activated()

        try:
            stored = self.store.load()
        except OSError as exc:
            logger.error("activation record could not be read: %s", exc.strerror or type(exc).__name__)
            return False
        if stored is None:
            return False
        return self.check(stored).valid

    def _check(self, token_bytes: bytes) -> VerificationResult:
        try:
            token = load_token(token_bytes)
        except MalformedTokenError as exc:
            return VerificationResult.failed(VerificationFailure.MALFORMED_TOKEN, exc.field)

        if not self._signature_valid(token):
            return VerificationResult.failed(VerificationFailure.SIGNATURE_INVALID, "signature")

        try:
            expiry = parse_rfc3339(token.expiry)
        except ValueError:
            return VerificationResult.failed(VerificationFailure.MALFORMED_TOKEN, "expiry")
        if self._clock() >= expiry:
            return VerificationResult.failed(VerificationFailure.EXPIRED, "expiry")

        try:
            local_hash = self.fingerprint_provider.fingerprint()
        except OSError:
            return VerificationResult.failed(VerificationFailure.IO_ERROR, "program_hash")
        if local_hash != token.program_hash:
            return VerificationResult.failed(VerificationFailure.FINGERPRINT_MISMATCH, "program_hash")

        try:
            local_machine = self.identity_provider.identify()
        except IdentityUnavailableError:
            return VerificationResult.failed(VerificationFailure.IDENTITY_UNAVAILABLE, "machine_id")
        except OSError:
            return VerificationResult.failed(VerificationFailure.IO_ERROR, "machine_id")
        if local_machine != token.machine_id:
            return VerificationResult.failed(VerificationFailure.MACHINE_MISMATCH, "machine_id")

        return VerificationResult.ok(token)

    def _signature_valid(self, token: Token) -> bool:
        try:
            signature = base64.b64decode(token.signature.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError):
            return False

        digest = hashlib.sha256(canonical_payload(token)).digest()
        try:
            self._public_key.verify(signature, digest, PSS_PADDING, utils.Prehashed(hashes.SHA256()))
        except InvalidSignature:
            return False
        return True
