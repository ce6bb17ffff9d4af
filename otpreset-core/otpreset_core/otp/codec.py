"""
Entry Codec
===========
JSON wire format for stored OTP entries.

Decoding never raises: it returns a DecodeResult that is either a valid
entry or a malformed marker carrying the reason. Callers purge malformed
values.
"""

import json
from dataclasses import dataclass
from typing import Optional, Any

from .hashing import is_supported_hash
from .models import OTPEntry


@dataclass
class DecodeResult:
    """Tagged decode outcome: exactly one of entry / error is set."""
    entry: Optional[OTPEntry] = None
    error: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.entry is not None


def encode_entry(entry: OTPEntry) -> bytes:
    payload = {
        "email": entry.email,
        "codeHash": entry.code_hash,
        "issuedAt": entry.issued_at,
        "expiresAt": entry.expires_at,
        "attempts": entry.attempts,
        "lastSentAt": entry.last_sent_at,
        "resendCount": entry.resend_count,
    }
    return json.dumps(payload, separators=(',', ':')).encode("utf-8")


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def decode_entry(raw: Any, ttl_ms: int) -> DecodeResult:
    """
    Decode a stored value.

    Entries written before issuedAt existed derive it from expiresAt - ttl_ms;
    missing counters default to 0.

    Args:
        raw: Value returned by the store (bytes or str)
        ttl_ms: Configured TTL, used for legacy entries

    Returns:
        DecodeResult
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            return DecodeResult(error="not utf-8")
    if not isinstance(raw, str):
        return DecodeResult(error=f"unexpected value type {type(raw).__name__}")

    try:
        data = json.loads(raw)
    except ValueError:
        return DecodeResult(error="not json")
    if not isinstance(data, dict):
        return DecodeResult(error="not an object")

    email = data.get("email")
    code_hash = data.get("codeHash")
    expires_at = data.get("expiresAt")

    if not isinstance(email, str) or not email:
        return DecodeResult(error="missing email")
    if not isinstance(code_hash, str) or not is_supported_hash(code_hash):
        return DecodeResult(error="missing or unsupported codeHash")
    if not _is_count(expires_at):
        return DecodeResult(error="missing expiresAt")

    issued_at = data.get("issuedAt", expires_at - ttl_ms)
    attempts = data.get("attempts", 0)
    resend_count = data.get("resendCount", 0)

    for name, value in (("issuedAt", issued_at), ("attempts", attempts), ("resendCount", resend_count)):
        if not _is_count(value):
            return DecodeResult(error=f"invalid {name}")

    last_sent_at = data.get("lastSentAt", issued_at)
    if not _is_count(last_sent_at):
        return DecodeResult(error="invalid lastSentAt")

    if issued_at > expires_at:
        return DecodeResult(error="issuedAt after expiresAt")

    return DecodeResult(entry=OTPEntry(
        email=email,
        code_hash=code_hash,
        issued_at=issued_at,
        expires_at=expires_at,
        attempts=attempts,
        last_sent_at=last_sent_at,
        resend_count=resend_count,
    ))
