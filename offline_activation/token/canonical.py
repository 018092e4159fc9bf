"""Canonical payload bytes and the token file format."""

from __future__ import annotations

import json
from typing import Any

from ..errors import MalformedTokenError
from ..utils.hashing import sha256_hex
from .types import TOKEN_FIELDS, Token

# Escapes applied on top of compact JSON so the signed bytes match what
# HTML-safe JSON encoders emit for the same record.
_HTML_SAFE_ESCAPES = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)


def _ordered(token: Token) -> dict[str, str]:
    return {name: getattr(token, name) for name in TOKEN_FIELDS}


def canonical_payload(token: Token) -> bytes:
    """Return the exact bytes that are signed and verified for ``token``.

    The signature field is always emitted empty, fields appear in
    ``TOKEN_FIELDS`` order and the JSON is compact UTF-8.
    """
    text = json.dumps(_ordered(token.unsigned()), separators=(",", ":"), ensure_ascii=False)
    for raw, escaped in _HTML_SAFE_ESCAPES:
        text = text.replace(raw, escaped)
    return text.encode("utf-8")


def token_digest(token: Token) -> str:
    """Return a loggable digest identifying a signed token without exposing it."""
    return sha256_hex(canonical_payload(token) + token.signature.encode("ascii", "replace"))


def dump_token(token: Token) -> bytes:
    """Serialize ``token`` to the indented UTF-8 JSON token file format."""
    return json.dumps(_ordered(token), indent=2, ensure_ascii=False).encode("utf-8") + b"\n"


def load_token(raw: bytes) -> Token:
    """Parse token file bytes, rejecting anything but the five string fields."""
    try:
        data: Any = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError, RecursionError) as exc:
        raise MalformedTokenError(f"token is not valid UTF-8 JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise MalformedTokenError("token must be a JSON object")

    unknown = sorted(set(data) - set(TOKEN_FIELDS))
    if unknown:
        raise MalformedTokenError(f"unexpected token field: {unknown[0]}", field=unknown[0])

    values: dict[str, str] = {}
    for name in TOKEN_FIELDS:
        if name not in data:
            raise MalformedTokenError(f"missing token field: {name}", field=name)
        value = data[name]
        if not isinstance(value, str):
            raise MalformedTokenError(f"token field {name} must be a string", field=name)
        try:
            value.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise MalformedTokenError(f"token field {name} is not encodable", field=name) from exc
        values[name] = value

    return Token(**values)
