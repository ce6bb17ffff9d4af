"""
Collaborator Interfaces
=======================
What the reset flow needs from the outside world.
"""

from typing import Optional, Protocol


class Directory(Protocol):
    async def get_email(self, user_id: str) -> Optional[str]:
        ...


class Mailer(Protocol):
    async def send(self, to: str, subject: str, body: str) -> None:
        ...


class PasswordMutator(Protocol):
    async def set_password(self, user_id: str, new_password: str) -> None:
        ...
