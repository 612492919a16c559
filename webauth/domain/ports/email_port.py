from __future__ import annotations

from typing import Protocol


class EmailPort(Protocol):
    async def send_verification_email(
        self,
        *,
        to: str,
        code: str,
        confirmation_url: str,
        idempotency_key: str | None = None,
    ) -> None:
        """
        Send the verification code and the link back to the signup page.

        Raises EmailDeliveryFailed when the message could not be handed off.
        """
