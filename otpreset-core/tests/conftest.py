"""
Shared fixtures: a controllable clock, an in-memory store on that clock and
cheap Argon2 parameters so hashing does not dominate test time.
"""

from typing import List, Tuple

import pytest

from otpreset_core.otp.manager import OTPLifecycleManager
from otpreset_core.otp.models import OTPConfig
from otpreset_core.store.in_memory import InMemoryStore


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_760_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class RecordingMailer:
    """Mailer that keeps every message instead of sending it."""

    def __init__(self):
        self.sent: List[Tuple[str, str, str]] = []

    async def send(self, to: str, subject: str, body: str) -> None:
        self.sent.append((to, subject, body))


FAST_HASH = dict(hash_time_cost=1, hash_memory_cost=1024, hash_parallelism=1)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock) -> InMemoryStore:
    return InMemoryStore(clock=clock)


@pytest.fixture
def config() -> OTPConfig:
    return OTPConfig(**FAST_HASH)


@pytest.fixture
def manager(store, config, clock) -> OTPLifecycleManager:
    return OTPLifecycleManager(store, config, clock=clock)


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()
