import base64
import hashlib
from datetime import datetime, timezone

import pytest
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from offline_activation.fingerprint.providers import StaticFingerprintProvider
from offline_activation.identity.providers import StaticIdentityProvider
from offline_activation.store.storage import InMemoryActivationStore
from offline_activation.token.canonical import canonical_payload, dump_token
from offline_activation.token.issuer import TokenSigner
from offline_activation.token.types import Token
from offline_activation.token.verifier import TokenVerifier

MACHINE_ID = "AA:BB:CC"
PROGRAM_HASH = hashlib.sha256(b"known program build").hexdigest()
FUTURE_EXPIRY = "2099-01-01T00:00:00Z"
PAST_EXPIRY = "2000-01-01T00:00:00Z"
NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="session")
def private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_pem(private_key) -> bytes:
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


@pytest.fixture(scope="session")
def public_pem(private_key) -> bytes:
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


@pytest.fixture()
def signer(private_key) -> TokenSigner:
    return TokenSigner(private_key)


@pytest.fixture()
def store() -> InMemoryActivationStore:
    return InMemoryActivationStore()


@pytest.fixture()
def make_verifier(private_key, store):
    def build(machine_id: str = MACHINE_ID, program_hash: str = PROGRAM_HASH, **kwargs) -> TokenVerifier:
        kwargs.setdefault("identity_provider", StaticIdentityProvider(machine_id))
        kwargs.setdefault("fingerprint_provider", StaticFingerprintProvider(program_hash))
        kwargs.setdefault("store", store)
        kwargs.setdefault("clock", lambda: NOW)
        return TokenVerifier(private_key.public_key(), **kwargs)

    return build


@pytest.fixture()
def sign_raw(private_key):
    """Sign arbitrary field values, bypassing the issuer's argument checks."""

    def build(**fields: str) -> bytes:
        token = Token(**fields)
        signature = private_key.sign(
            canonical_payload(token),
            padding.PSS(mgf=padding.MGF1(hashes.SHA256()), salt_length=padding.PSS.DIGEST_LENGTH),
            hashes.SHA256(),
        )
        return dump_token(Token(**fields, signature=base64.b64encode(signature).decode("ascii")))

    return build
