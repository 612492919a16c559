from __future__ import annotations

from typing import Optional, Dict
import httpx

from webauth.domain.errors import EmailDeliveryFailed
from webauth.domain.ports.email_port import EmailPort

SUBJECT = "Confirm your email"


def render_body(code: str, confirmation_url: str) -> str:
    return (
        f"Your verification code is {code}.\n"
        f"Enter it on the signup page: {confirmation_url}\n"
    )


class HttpSmtpEmailAdapter(EmailPort):
    def __init__(
        self,
        base_url: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 5.0,
        send_path: str = "/send",
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._send_path = send_path if send_path.startswith("/") else f"/{send_path}"
        self._owns_client: bool = client is None
        self._client: httpx.AsyncClient = client or httpx.AsyncClient(timeout=timeout)

    async def send_verification_email(
        self,
        *,
        to: str,
        code: str,
        confirmation_url: str,
        idempotency_key: str | None = None,
    ) -> None:
        headers: Dict[str, str] = {}
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key

        url = f"{self._base_url}{self._send_path}"
        payload = {
            "to": to,
            "subject": SUBJECT,
            "body": render_body(code, confirmation_url),
        }

        try:
            resp = await self._client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise EmailDeliveryFailed(f"SMTP HTTP error: {e}") from e
        if not (200 <= resp.status_code < 300):
            text = resp.text[:200]
            raise EmailDeliveryFailed(f"SMTP responded {resp.status_code}: {text}")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
