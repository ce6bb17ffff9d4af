"""
OTP Lifecycle Manager
=====================
Issue, rate-limit, verify and expire one OTP entry per subject against a
shared expiring key-value store.

The store only offers single-key primitives. record_attempt is therefore a
read-increment-write: two concurrent verifications for the same subject can
both persist attempts=N+1. The attempt cap is a throttle, not a guarantee;
hash cost and the resend cooldown bound guessing throughput anyway.
"""

import time
from typing import Callable, Optional, Tuple
import structlog

from ..store.base import KeyValueStore
from .codec import decode_entry, encode_entry
from .hashing import OTPHasher, generate_otp
from .models import OTPConfig, OTPEntry, DeliveryDecision, VerifyResult, VerifyFailure

logger = structlog.get_logger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class OTPLifecycleManager:
    """Owns every mutation of OTP entries. The store is the only source of truth."""

    def __init__(
        self,
        store: KeyValueStore,
        config: Optional[OTPConfig] = None,
        hasher: Optional[OTPHasher] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.store = store
        self.config = config if config is not None else OTPConfig()
        self.hasher = hasher if hasher is not None else OTPHasher(self.config)
        self.clock = clock

    def key(self, subject_id: str) -> str:
        return f"{self.config.key_prefix}:meta:{subject_id}"

    async def issue(self, subject_id: str, email: str) -> Tuple[str, OTPEntry]:
        """
        Create a fresh entry, overwriting any existing one.

        Returns:
            Tuple of (plain_code, entry). The plain code is returned only
            here; deliver it once and drop it.
        """
        code = generate_otp(self.config.code_length)
        code_hash = await self.hasher.hash(code)
        now = self.clock()

        entry = OTPEntry(
            email=email,
            code_hash=code_hash,
            issued_at=now,
            expires_at=now + self.config.ttl_ms,
            attempts=0,
            last_sent_at=now,
            resend_count=0,
        )
        await self.store.set_with_expiry(self.key(subject_id), encode_entry(entry), self.config.ttl_ms)

        logger.info("OTP issued", subject_id=subject_id, expires_in_ms=self.config.ttl_ms)
        return code, entry

    async def fetch(self, subject_id: str) -> Optional[OTPEntry]:
        """Return the live entry, or None. Expired and malformed values are purged."""
        key = self.key(subject_id)
        raw = await self.store.get(key)
        if raw is None:
            return None

        decoded = decode_entry(raw, self.config.ttl_ms)
        if not decoded.is_valid:
            logger.warning("Malformed OTP entry purged", subject_id=subject_id, error=decoded.error)
            await self.store.delete(key)
            return None

        entry = decoded.entry
        if entry.is_expired(self.clock()):
            logger.info("Expired OTP entry purged", subject_id=subject_id)
            await self.store.delete(key)
            return None

        return entry

    async def can_deliver(self, subject_id: str) -> DeliveryDecision:
        """
        Check whether another delivery is allowed. No mutation.

        Cooldown is evaluated before the resend limit.
        """
        entry = await self.fetch(subject_id)
        if entry is None:
            return DeliveryDecision.allow()

        elapsed = self.clock() - entry.last_sent_at
        if elapsed < self.config.resend_cooldown_ms:
            return DeliveryDecision.cooldown(self.config.resend_cooldown_ms - elapsed)

        if entry.resend_count >= self.config.max_resends:
            return DeliveryDecision.limit()

        return DeliveryDecision.allow()

    async def mark_delivered(self, subject_id: str) -> None:
        """Record a successful resend. Never moves expires_at."""
        entry = await self.fetch(subject_id)
        if entry is None:
            logger.warning("Resend recorded without live OTP", subject_id=subject_id)
            return

        entry.resend_count += 1
        entry.last_sent_at = self.clock()
        if not await self._persist(subject_id, entry):
            logger.warning("Resend recorded after OTP was gone", subject_id=subject_id)
            return

        logger.info("OTP resent", subject_id=subject_id, resend_count=entry.resend_count)

    async def record_attempt(self, subject_id: str, entry: OTPEntry) -> Optional[OTPEntry]:
        """
        Increment attempts on an entry fetched just before, and persist it.

        Returns None if the entry was deleted or ran out in the meantime.
        """
        entry.attempts += 1
        if not await self._persist(subject_id, entry):
            return None
        return entry

    async def verify(self, subject_id: str, candidate_code: str) -> VerifyResult:
        """
        Check a candidate code.

        Success leaves the entry in place; the caller revokes it once the
        guarded action has completed.
        """
        entry = await self.fetch(subject_id)
        if entry is None:
            return VerifyResult.failure(VerifyFailure.EXPIRED)

        entry = await self.record_attempt(subject_id, entry)
        if entry is None:
            return VerifyResult.failure(VerifyFailure.EXPIRED)

        if entry.attempts > self.config.max_verify_attempts:
            await self.revoke(subject_id)
            logger.warning("OTP attempts exhausted", subject_id=subject_id, attempts=entry.attempts)
            return VerifyResult.failure(VerifyFailure.TOO_MANY_ATTEMPTS)

        if not await self.hasher.verify(candidate_code, entry.code_hash):
            logger.warning(
                "Invalid OTP attempt",
                subject_id=subject_id,
                remaining=self.config.max_verify_attempts - entry.attempts,
            )
            return VerifyResult.failure(VerifyFailure.INVALID_CODE)

        logger.info("OTP verified", subject_id=subject_id)
        return VerifyResult.success()

    async def revoke(self, subject_id: str) -> None:
        """Delete the entry. Idempotent."""
        await self.store.delete(self.key(subject_id))

    async def _persist(self, subject_id: str, entry: OTPEntry) -> bool:
        """
        Write an existing entry back without extending its life.

        Uses the key's remaining TTL, clamped to the entry's own deadline.
        Returns False without writing if the key is gone (revoked, purged or
        evicted) or the entry has run out.
        """
        key = self.key(subject_id)
        remaining = await self.store.remaining_ttl(key)
        ttl_ms = min(remaining, entry.expires_at - self.clock()) if remaining is not None else 0

        if ttl_ms <= 0:
            await self.store.delete(key)
            return False

        await self.store.set_with_expiry(key, encode_entry(entry), ttl_ms)
        return True
