"""
Password Reset Flow
===================
Orchestrates the directory, mailer, password mutator and the OTP
lifecycle manager. Knows nothing about HTTP.
"""

from dataclasses import dataclass
from typing import Optional
import structlog

from ..otp.manager import OTPLifecycleManager
from ..otp.models import DenyReason, VerifyFailure
from .interfaces import Directory, Mailer, PasswordMutator

logger = structlog.get_logger(__name__)

EMAIL_SUBJECT = "Your password reset code"


@dataclass
class StartResult:
    """Outcome of a reset start / resend request."""
    ok: bool
    reason: Optional[DenyReason] = None
    retry_after_ms: Optional[int] = None
    expires_in_ms: Optional[int] = None
    ttl_ms: Optional[int] = None
    resend_cooldown_ms: Optional[int] = None
    max_resends: Optional[int] = None


@dataclass
class CompleteResult:
    """Outcome of a reset completion."""
    ok: bool
    reason: Optional[VerifyFailure] = None


class PasswordResetFlow:
    """Email-OTP gated password reset."""

    def __init__(
        self,
        manager: OTPLifecycleManager,
        directory: Directory,
        mailer: Mailer,
        passwords: PasswordMutator,
    ):
        self.manager = manager
        self.directory = directory
        self.mailer = mailer
        self.passwords = passwords

    def _ttl_minutes(self) -> int:
        return max(1, self.manager.config.ttl_ms // 60_000)

    def _accepted(self, expires_in_ms: Optional[int]) -> StartResult:
        config = self.manager.config
        return StartResult(
            ok=True,
            expires_in_ms=expires_in_ms,
            ttl_ms=config.ttl_ms,
            resend_cooldown_ms=config.resend_cooldown_ms,
            max_resends=config.max_resends,
        )

    async def start(self, user_id: str) -> StartResult:
        """
        Send a code, or a reminder if one is already live.

        Unknown users get the same answer as a fresh issue, so accounts
        cannot be enumerated.
        """
        email = (await self.directory.get_email(user_id) or "").strip()
        if not email:
            logger.info("Reset requested for user without email", user_id=user_id)
            return self._accepted(self.manager.config.ttl_ms)

        existing = await self.manager.fetch(user_id)
        if existing is not None:
            decision = await self.manager.can_deliver(user_id)
            if not decision.allowed:
                logger.info("Resend denied", user_id=user_id, reason=decision.reason.value)
                return StartResult(
                    ok=False,
                    reason=decision.reason,
                    retry_after_ms=decision.retry_after_ms,
                )

            # The plaintext was discarded at issuance; only a reminder can go out.
            await self.mailer.send(
                existing.email,
                EMAIL_SUBJECT,
                "Your verification code is still valid. Check your inbox and spam folder. "
                f"It expires {self._ttl_minutes()} minutes after it was first sent.",
            )
            await self.manager.mark_delivered(user_id)
            return self._accepted(existing.expires_in_ms(self.manager.clock()))

        code, entry = await self.manager.issue(user_id, email)
        try:
            await self.mailer.send(
                email,
                EMAIL_SUBJECT,
                f"Your verification code is {code}. It expires in {self._ttl_minutes()} minutes.",
            )
        except Exception:
            # Nobody received this code; do not leave it blocking a retry.
            await self.manager.revoke(user_id)
            raise
        return self._accepted(entry.expires_in_ms(self.manager.clock()))

    async def complete(self, user_id: str, code: str, new_password: str) -> CompleteResult:
        """
        Verify the code and set the new password.

        The entry is revoked only after the password update succeeds, so a
        failed update can be retried with the same code.
        """
        result = await self.manager.verify(user_id, code)
        if not result.ok:
            return CompleteResult(ok=False, reason=result.reason)

        await self.passwords.set_password(user_id, new_password)
        await self.manager.revoke(user_id)

        logger.info("Password reset completed", user_id=user_id)
        return CompleteResult(ok=True)
