from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class RegisteredAccount:
    id: str
    email: str


class AccountExistencePort(Protocol):
    async def is_email_registered(self, email: str) -> bool:
        """True if an account already uses this email."""


class RegistrationPort(Protocol):
    async def register(
        self,
        *,
        email: str,
        password: str,
        first_name: str | None = None,
        last_name: str | None = None,
        ip: str | None = None,
        user_agent: str | None = None,
        referer: str | None = None,
    ) -> RegisteredAccount:
        """Create the account. Raises RegistrationFailed."""
