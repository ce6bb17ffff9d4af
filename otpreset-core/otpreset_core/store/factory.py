"""
Store Selection
===============
Pick the store backend from configuration.
"""

import os
from dataclasses import dataclass, field
import structlog

from .base import KeyValueStore
from .in_memory import InMemoryStore
from .redis_store import RedisStore

logger = structlog.get_logger(__name__)

BACKENDS = ("redis", "memory")


@dataclass(frozen=True)
class StoreConfig:
    """Configuration for the OTP store backend."""
    backend: str = field(default_factory=lambda: os.getenv("OTP_STORE_BACKEND", "redis").lower())
    redis_url: str = field(default_factory=lambda: os.getenv("REDIS_URL", "redis://localhost:6379/0"))
    environment: str = field(default_factory=lambda: os.getenv("ENVIRONMENT", "development").lower())

    @classmethod
    def from_env(cls) -> "StoreConfig":
        return cls()

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def create_store(config: StoreConfig = None) -> KeyValueStore:
    """
    Build the configured store.

    The in-memory backend is refused in production; a missing Redis is an
    error, never a reason to fall back to process-local state.
    """
    if config is None:
        config = StoreConfig.from_env()

    if config.backend not in BACKENDS:
        raise ValueError(f"Unknown OTP store backend: {config.backend!r}")

    if config.backend == "memory":
        if config.is_production:
            raise ValueError("The in-memory OTP store cannot be used in production")
        logger.warning("otp_store_selected", backend="memory", environment=config.environment)
        return InMemoryStore()

    logger.info("otp_store_selected", backend="redis", environment=config.environment)
    return RedisStore.from_url(config.redis_url)
