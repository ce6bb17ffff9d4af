"""
OTP Store Backends
==================
Expiring key-value stores: Redis for production, in-memory for development.
"""

from .base import KeyValueStore
from .in_memory import InMemoryStore
from .redis_store import RedisStore
from .factory import StoreConfig, create_store

__all__ = [
    "KeyValueStore",
    "InMemoryStore",
    "RedisStore",
    "StoreConfig",
    "create_store",
]
