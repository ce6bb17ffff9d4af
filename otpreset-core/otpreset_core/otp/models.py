"""
OTP Models
==========
Configuration, entry and result models for the OTP lifecycle.
"""

import os
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Optional, Dict, Any


class DenyReason(str, Enum):
    """Why a delivery was refused."""
    COOLDOWN = "cooldown"
    LIMIT = "limit"


class VerifyFailure(str, Enum):
    """Why a verification failed."""
    EXPIRED = "expired"
    TOO_MANY_ATTEMPTS = "too_many_attempts"
    INVALID_CODE = "invalid_code"


@dataclass(frozen=True)
class OTPConfig:
    """
    Lifecycle configuration.

    Built once at startup and injected into the manager; never re-read
    from the environment per call.
    """
    ttl_ms: int = 10 * 60_000  # 10 minutes
    resend_cooldown_ms: int = 30_000
    max_resends: int = 5
    max_verify_attempts: int = 5
    code_length: int = 6
    key_prefix: str = "otp"
    # Argon2id cost
    hash_time_cost: int = 2
    hash_memory_cost: int = 19456  # KiB
    hash_parallelism: int = 1

    def __post_init__(self):
        if self.ttl_ms <= 0:
            raise ValueError("ttl_ms must be positive")
        if self.resend_cooldown_ms < 0:
            raise ValueError("resend_cooldown_ms cannot be negative")
        if self.max_resends < 0 or self.max_verify_attempts < 0:
            raise ValueError("limits cannot be negative")
        if self.code_length < 4:
            raise ValueError("code_length must be at least 4")
        if not self.key_prefix:
            raise ValueError("key_prefix cannot be empty")

    @classmethod
    def from_env(cls) -> "OTPConfig":
        """Build the configuration from environment variables."""
        return cls(
            ttl_ms=int(os.getenv("OTP_TTL_MS", "600000")),
            resend_cooldown_ms=int(os.getenv("RESEND_COOLDOWN_MS", "30000")),
            max_resends=int(os.getenv("MAX_RESENDS", "5")),
            max_verify_attempts=int(os.getenv("MAX_VERIFY_ATTEMPTS", "5")),
            code_length=int(os.getenv("OTP_CODE_LENGTH", "6")),
            key_prefix=os.getenv("OTP_KEY_PREFIX", "otp"),
            hash_time_cost=int(os.getenv("OTP_HASH_TIME_COST", "2")),
            hash_memory_cost=int(os.getenv("OTP_HASH_MEMORY_COST", "19456")),
            hash_parallelism=int(os.getenv("OTP_HASH_PARALLELISM", "1")),
        )


@dataclass
class OTPEntry:
    """
    One live OTP per subject. All timestamps are epoch milliseconds.

    The plaintext code is never part of the entry.
    """
    email: str
    code_hash: str
    issued_at: int
    expires_at: int
    attempts: int = 0
    last_sent_at: int = 0
    resend_count: int = 0

    def is_expired(self, now_ms: int) -> bool:
        return now_ms > self.expires_at

    def expires_in_ms(self, now_ms: int) -> int:
        return max(0, self.expires_at - now_ms)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DeliveryDecision:
    """Result of a resend gate check."""
    allowed: bool
    reason: Optional[DenyReason] = None
    retry_after_ms: Optional[int] = None

    @classmethod
    def allow(cls) -> "DeliveryDecision":
        return cls(allowed=True)

    @classmethod
    def cooldown(cls, retry_after_ms: int) -> "DeliveryDecision":
        return cls(allowed=False, reason=DenyReason.COOLDOWN, retry_after_ms=retry_after_ms)

    @classmethod
    def limit(cls) -> "DeliveryDecision":
        return cls(allowed=False, reason=DenyReason.LIMIT)


@dataclass
class VerifyResult:
    """Result of a code verification."""
    ok: bool
    reason: Optional[VerifyFailure] = None

    @classmethod
    def success(cls) -> "VerifyResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, reason: VerifyFailure) -> "VerifyResult":
        return cls(ok=False, reason=reason)
