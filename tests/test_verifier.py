import hashlib
import json

import pytest

from conftest import FUTURE_EXPIRY, MACHINE_ID, NOW, PAST_EXPIRY, PROGRAM_HASH
from offline_activation.errors import IdentityUnavailableError, VerificationError
from offline_activation.fingerprint.base import ProgramFingerprintProvider
from offline_activation.identity.base import MachineIdentityProvider
from offline_activation.store.storage import FileActivationStore, InMemoryActivationStore
from offline_activation.token.types import VerificationFailure
from offline_activation.utils.time import format_rfc3339


class UnavailableIdentity(MachineIdentityProvider):
    def identify(self) -> str:
        raise IdentityUnavailableError("no identity source worked")


class UnreadableMachineId(MachineIdentityProvider):
    def identify(self) -> str:
        raise PermissionError(13, "Permission denied")


class UnreadableExecutable(ProgramFingerprintProvider):
    def fingerprint(self) -> str:
        raise PermissionError(13, "Permission denied")


class FailingStore(InMemoryActivationStore):
    def persist(self, token_bytes: bytes) -> None:
        raise OSError(28, "No space left on device")


def _issue(signer, **overrides) -> bytes:
    fields = {"machine_id": MACHINE_ID, "program_hash": PROGRAM_HASH, "expiry": FUTURE_EXPIRY, "extra": ""}
    fields.update(overrides)
    return signer.sign(**fields).token_bytes


def test_valid_token_activates(signer, make_verifier, store) -> None:
    token_bytes = _issue(signer)
    result = make_verifier().verify(token_bytes)
    assert result.valid is True
    assert result.reason == "ok"
    assert result.token is not None and result.token.machine_id == MACHINE_ID
    assert store.load() == token_bytes
    assert store.is_activated() is True


def test_expired_token_is_rejected_and_not_persisted(signer, make_verifier, store) -> None:
    result = make_verifier().verify(_issue(signer, expiry=PAST_EXPIRY))
    assert result.valid is False
    assert result.reason == VerificationFailure.EXPIRED
    assert result.field == "expiry"
    assert store.is_activated() is False


def test_token_expires_at_the_expiry_instant(signer, make_verifier) -> None:
    token_bytes = _issue(signer, expiry=format_rfc3339(NOW))
    assert make_verifier().verify(token_bytes).reason == VerificationFailure.EXPIRED


def test_fingerprint_mismatch(signer, make_verifier, store) -> None:
    other = hashlib.sha256(b"patched build").hexdigest()
    result = make_verifier(program_hash=other).verify(_issue(signer))
    assert result.reason == VerificationFailure.FINGERPRINT_MISMATCH
    assert result.field == "program_hash"
    assert store.load() is None


def test_machine_mismatch(signer, make_verifier) -> None:
    result = make_verifier(machine_id="DD:EE:FF").verify(_issue(signer))
    assert result.reason == VerificationFailure.MACHINE_MISMATCH
    assert result.field == "machine_id"


def test_expiry_is_reported_before_fingerprint_and_machine(signer, make_verifier) -> None:
    verifier = make_verifier(machine_id="DD:EE:FF", program_hash="0" * 64)
    result = verifier.verify(_issue(signer, expiry=PAST_EXPIRY))
    assert result.reason == VerificationFailure.EXPIRED


def test_fingerprint_is_reported_before_machine(signer, make_verifier) -> None:
    result = make_verifier(machine_id="DD:EE:FF", program_hash="0" * 64).verify(_issue(signer))
    assert result.reason == VerificationFailure.FINGERPRINT_MISMATCH


@pytest.mark.parametrize("field", ["machine_id", "program_hash", "expiry", "extra"])
def test_single_byte_tamper_breaks_signature(signer, make_verifier, store, field: str) -> None:
    data = json.loads(_issue(signer, extra="plan=pro"))
    value = data[field]
    data[field] = ("0" if value[0] != "0" else "1") + value[1:]
    result = make_verifier().verify(json.dumps(data).encode())
    assert result.reason == VerificationFailure.SIGNATURE_INVALID
    assert store.load() is None


def test_signature_from_other_key_is_rejected(signer, make_verifier) -> None:
    from cryptography.hazmat.primitives.asymmetric import rsa

    from offline_activation.token.issuer import TokenSigner

    stranger = TokenSigner(rsa.generate_private_key(public_exponent=65537, key_size=2048))
    result = make_verifier().verify(_issue(stranger))
    assert result.reason == VerificationFailure.SIGNATURE_INVALID


@pytest.mark.parametrize("signature", ["", "not base64!", "AAAA", "é"])
def test_bad_signature_encoding(signer, make_verifier, signature: str) -> None:
    data = json.loads(_issue(signer))
    data["signature"] = signature
    result = make_verifier().verify(json.dumps(data).encode())
    assert result.reason == VerificationFailure.SIGNATURE_INVALID


def test_malformed_token(make_verifier) -> None:
    result = make_verifier().verify(b'{"machine_id": "AA:BB:CC"}')
    assert result.reason == VerificationFailure.MALFORMED_TOKEN


def test_deeply_nested_token_is_malformed(make_verifier, store) -> None:
    result = make_verifier().verify(b"[" * 200000)
    assert result.reason == VerificationFailure.MALFORMED_TOKEN
    assert store.load() is None


def test_signed_but_unparsable_expiry_is_malformed(sign_raw, make_verifier) -> None:
    token_bytes = sign_raw(machine_id=MACHINE_ID, program_hash=PROGRAM_HASH, expiry="next year", extra="")
    result = make_verifier().verify(token_bytes)
    assert result.reason == VerificationFailure.MALFORMED_TOKEN
    assert result.field == "expiry"


def test_unsigned_garbage_expiry_fails_signature_first(signer, make_verifier) -> None:
    data = json.loads(_issue(signer))
    data["expiry"] = "next year"
    result = make_verifier().verify(json.dumps(data).encode())
    assert result.reason == VerificationFailure.SIGNATURE_INVALID


def test_identity_unavailable_is_a_hard_failure(signer, make_verifier, store) -> None:
    result = make_verifier(identity_provider=UnavailableIdentity()).verify(_issue(signer))
    assert result.reason == VerificationFailure.IDENTITY_UNAVAILABLE
    assert store.load() is None


def test_unreadable_executable_is_io_error(signer, make_verifier) -> None:
    result = make_verifier(fingerprint_provider=UnreadableExecutable()).verify(_issue(signer))
    assert result.reason == VerificationFailure.IO_ERROR
    assert result.field == "program_hash"


def test_unreadable_machine_id_is_io_error(signer, make_verifier, store) -> None:
    result = make_verifier(identity_provider=UnreadableMachineId()).verify(_issue(signer))
    assert result.reason == VerificationFailure.IO_ERROR
    assert result.field == "machine_id"
    assert store.load() is None


def test_persist_failure_is_io_error(signer, make_verifier) -> None:
    result = make_verifier(store=FailingStore()).verify(_issue(signer))
    assert result.valid is False
    assert result.reason == VerificationFailure.IO_ERROR


def test_verify_file(tmp_path, signer, make_verifier) -> None:
    path = tmp_path / "token.json"
    path.write_bytes(_issue(signer))
    assert make_verifier().verify_file(path).valid is True
    assert make_verifier().verify_file(tmp_path / "missing.json").reason == VerificationFailure.IO_ERROR


def test_verifier_from_pem_and_file_store(tmp_path, signer, public_pem) -> None:
    from offline_activation.fingerprint.providers import StaticFingerprintProvider
    from offline_activation.identity.providers import StaticIdentityProvider
    from offline_activation.token.verifier import TokenVerifier

    record = tmp_path / "state" / "activation.json"
    verifier = TokenVerifier.from_pem(
        public_pem,
        identity_provider=StaticIdentityProvider(MACHINE_ID),
        fingerprint_provider=StaticFingerprintProvider(PROGRAM_HASH),
        store=FileActivationStore(record),
    )
    assert verifier.verify(_issue(signer)).valid is True
    assert record.is_file()
    assert verifier.is_activated() is True


def test_is_activated_rechecks_stored_token(signer, make_verifier, store) -> None:
    assert make_verifier().is_activated() is False

    store.persist(_issue(signer, expiry=PAST_EXPIRY))
    verifier = make_verifier()
    assert verifier.is_activated(recheck=False) is True
    assert verifier.is_activated() is False

    store.persist(_issue(signer))
    assert verifier.is_activated() is True
    assert make_verifier(machine_id="DD:EE:FF").is_activated() is False


def test_check_does_not_persist(signer, make_verifier, store) -> None:
    assert make_verifier().check(_issue(signer)).valid is True
    assert store.load() is None


def test_raise_for_failure(signer, make_verifier) -> None:
    ok = make_verifier().verify(_issue(signer))
    ok.raise_for_failure()

    failed = make_verifier().verify(_issue(signer, expiry=PAST_EXPIRY))
    with pytest.raises(VerificationError) as excinfo:
        failed.raise_for_failure()
    assert excinfo.value.kind == VerificationFailure.EXPIRED
    assert excinfo.value.field == "expiry"
    assert "expired (expiry)" in str(excinfo.value)
