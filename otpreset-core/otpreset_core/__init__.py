"""
OTP Reset Core Library
======================
One-time passcode lifecycle for email-gated password resets.
"""

__version__ = "0.1.0"

# Errors
from otpreset_core.exceptions import (
    OTPResetError,
    StoreUnavailableError,
    HashingError,
    EmailDeliveryError,
    UpstreamServiceError,
    UpstreamUnavailableError,
    UpstreamTimeoutError,
    UpstreamAuthError,
)

# OTP
from otpreset_core.otp import (
    OTPConfig,
    OTPEntry,
    DeliveryDecision,
    VerifyResult,
    DenyReason,
    VerifyFailure,
    OTPHasher,
    OTPLifecycleManager,
    generate_otp,
)

# Store
from otpreset_core.store import (
    KeyValueStore,
    InMemoryStore,
    RedisStore,
    StoreConfig,
    create_store,
)

# Reset flow
from otpreset_core.reset import (
    PasswordResetFlow,
    StartResult,
    CompleteResult,
    UserAdminClient,
    UserAdminConfig,
    SMTPMailer,
    SMTPConfig,
    ConsoleMailer,
)

__all__ = [
    # Errors
    "OTPResetError",
    "StoreUnavailableError",
    "HashingError",
    "EmailDeliveryError",
    "UpstreamServiceError",
    "UpstreamUnavailableError",
    "UpstreamTimeoutError",
    "UpstreamAuthError",
    # OTP
    "OTPConfig",
    "OTPEntry",
    "DeliveryDecision",
    "VerifyResult",
    "DenyReason",
    "VerifyFailure",
    "OTPHasher",
    "OTPLifecycleManager",
    "generate_otp",
    # Store
    "KeyValueStore",
    "InMemoryStore",
    "RedisStore",
    "StoreConfig",
    "create_store",
    # Reset flow
    "PasswordResetFlow",
    "StartResult",
    "CompleteResult",
    "UserAdminClient",
    "UserAdminConfig",
    "SMTPMailer",
    "SMTPConfig",
    "ConsoleMailer",
]
