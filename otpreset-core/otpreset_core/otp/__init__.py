"""
OTP Lifecycle
=============
One-time passcode issuance, resend gating, verification and expiry.
"""

from .models import (
    OTPConfig,
    OTPEntry,
    DeliveryDecision,
    VerifyResult,
    DenyReason,
    VerifyFailure,
)
from .hashing import generate_otp, OTPHasher
from .codec import encode_entry, decode_entry, DecodeResult
from .manager import OTPLifecycleManager

__all__ = [
    # Models
    "OTPConfig",
    "OTPEntry",
    "DeliveryDecision",
    "VerifyResult",
    "DenyReason",
    "VerifyFailure",
    # Hashing
    "generate_otp",
    "OTPHasher",
    # Codec
    "encode_entry",
    "decode_entry",
    "DecodeResult",
    # Manager
    "OTPLifecycleManager",
]
