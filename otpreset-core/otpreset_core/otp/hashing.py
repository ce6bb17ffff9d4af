"""
OTP Hashing
===========
Code generation and slow one-way hashing of OTP codes.

New codes are hashed with Argon2id. Entries written by the previous
service generation carry bcrypt hashes; those still verify.
"""

import asyncio
import secrets
from typing import Optional

import bcrypt
import structlog
from argon2 import PasswordHasher, Type
from argon2.exceptions import VerifyMismatchError, InvalidHashError, VerificationError

from ..exceptions import HashingError
from .models import OTPConfig

logger = structlog.get_logger(__name__)

ARGON2_PREFIX = "$argon2"
BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def generate_otp(length: int = 6) -> str:
    """
    Generate a uniformly random numeric OTP.

    Args:
        length: Number of digits

    Returns:
        Zero-padded OTP string
    """
    otp = secrets.randbelow(10 ** length)
    return str(otp).zfill(length)


def is_supported_hash(code_hash: str) -> bool:
    """True if the hash uses a scheme this module can verify."""
    return code_hash.startswith(ARGON2_PREFIX) or code_hash.startswith(BCRYPT_PREFIXES)


class OTPHasher:
    """
    Async-safe OTP hashing.

    Hashing is deliberately slow, so both operations run in the default
    executor to keep the event loop free.
    """

    def __init__(self, config: Optional[OTPConfig] = None):
        config = config if config is not None else OTPConfig()
        self._hasher = PasswordHasher(
            time_cost=config.hash_time_cost,
            memory_cost=config.hash_memory_cost,
            parallelism=config.hash_parallelism,
            hash_len=32,
            salt_len=16,
            type=Type.ID,
        )

    def hash_sync(self, code: str) -> str:
        try:
            return self._hasher.hash(code)
        except Exception as e:
            raise HashingError(f"argon2 hashing failed: {e}") from e

    def verify_sync(self, code: str, code_hash: str) -> bool:
        """
        Verify a code against an Argon2id or bcrypt hash.

        A mismatch or an unusable hash returns False; any other backend
        failure raises HashingError.
        """
        if not code or not code_hash:
            return False

        if code_hash.startswith(ARGON2_PREFIX):
            try:
                return self._hasher.verify(code_hash, code)
            except VerifyMismatchError:
                return False
            except (InvalidHashError, VerificationError) as e:
                logger.warning("Unverifiable argon2 hash", error=str(e))
                return False
            except Exception as e:
                raise HashingError(f"argon2 verification failed: {e}") from e

        if code_hash.startswith(BCRYPT_PREFIXES):
            try:
                return bcrypt.checkpw(code.encode("utf-8"), code_hash.encode("utf-8"))
            except ValueError as e:
                logger.warning("Unverifiable bcrypt hash", error=str(e))
                return False
            except Exception as e:
                raise HashingError(f"bcrypt verification failed: {e}") from e

        logger.warning("Unknown OTP hash scheme")
        return False

    async def hash(self, code: str) -> str:
        """Hash a plaintext code."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.hash_sync, code)

    async def verify(self, code: str, code_hash: str) -> bool:
        """Compare a candidate code against a stored hash."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.verify_sync, code, code_hash)
