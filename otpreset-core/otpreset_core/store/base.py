"""
Key-Value Store Interface
=========================
The four single-key primitives the OTP lifecycle needs.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStore(ABC):
    """
    Expiring key-value store.

    Every primitive is atomic for a single key; there are no multi-key
    transactions and no read-modify-write.
    """

    backend: str = "abstract"

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """Return the stored value, or None if absent or expired."""

    @abstractmethod
    async def set_with_expiry(self, key: str, value: bytes, ttl_ms: int) -> None:
        """Store value under key, expiring after ttl_ms milliseconds."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete key. Deleting a missing key is not an error."""

    @abstractmethod
    async def remaining_ttl(self, key: str) -> Optional[int]:
        """Remaining lifetime in ms, or None if the key is absent or has no expiry."""

    async def ping(self) -> None:
        """Raise if the store is unreachable."""

    async def close(self) -> None:
        """Release connections."""
