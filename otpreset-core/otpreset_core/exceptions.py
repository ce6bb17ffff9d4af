"""
Exceptions
==========
Infrastructure failures raised by otpreset-core.

Expected outcomes (no live entry, cooldown, limits, wrong code) are
returned as plain values and never raised.
"""

from typing import Optional, Any


class OTPResetError(Exception):
    """Base class for all otpreset-core failures."""
    pass


class StoreUnavailableError(OTPResetError):
    """Raised when the key-value store cannot be reached or errors out."""

    def __init__(self, message: str, operation: str = "unknown"):
        super().__init__(f"[store:{operation}] {message}")
        self.operation = operation


class HashingError(OTPResetError):
    """Raised when the hash backend fails for reasons other than a mismatch."""
    pass


class EmailDeliveryError(OTPResetError):
    """Raised when an email could not be handed to the mail transport."""
    pass


class UpstreamServiceError(OTPResetError):
    """Base exception for user-admin service communication errors."""

    def __init__(
        self,
        message: str,
        service: str = "unknown",
        status_code: Optional[int] = None,
        details: Any = None,
    ):
        self.message = message
        self.service = service
        self.status_code = status_code
        self.details = details
        super().__init__(f"[{service}] {message} (Status: {status_code})")


class UpstreamUnavailableError(UpstreamServiceError):
    """Raised when the upstream service is unreachable or returns 5xx."""
    pass


class UpstreamTimeoutError(UpstreamUnavailableError):
    """Raised specifically on timeouts."""
    pass


class UpstreamAuthError(UpstreamServiceError):
    """Raised when the upstream rejects our credentials (401/403)."""
    pass
