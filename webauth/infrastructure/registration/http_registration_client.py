from __future__ import annotations

import logging
from typing import Optional

import httpx

from webauth.domain.errors import RegistrationFailed
from webauth.domain.ports.accounts import (
    AccountExistencePort,
    RegisteredAccount,
    RegistrationPort,
)

logger = logging.getLogger(__name__)


def _json_object(resp: httpx.Response, what: str) -> dict:
    try:
        body = resp.json()
    except ValueError as e:
        raise RegistrationFailed(f"{what} returned invalid JSON") from e
    if not isinstance(body, dict):
        raise RegistrationFailed(f"{what} returned {type(body).__name__}, expected object")
    return body


class HttpRegistrationClient(AccountExistencePort, RegistrationPort):
    """
    Client for the external registration service.

    GET  /api/accounts/exists?email=...  -> {"exists": bool}
    POST /api/registration               -> {"account": {"id": ..., "email": ...}}
    """

    def __init__(
        self,
        base_url: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 5.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._owns_client: bool = client is None
        self._client: httpx.AsyncClient = client or httpx.AsyncClient(timeout=timeout)

    async def is_email_registered(self, email: str) -> bool:
        url = f"{self._base_url}/api/accounts/exists"
        try:
            resp = await self._client.get(url, params={"email": email})
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise RegistrationFailed(f"account lookup failed: {e}") from e
        return bool(_json_object(resp, "account lookup").get("exists"))

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
        url = f"{self._base_url}/api/registration"
        payload = {
            "email": email,
            "password": password,
            "firstName": first_name,
            "lastName": last_name,
            "ip": ip,
            "userAgent": user_agent,
            "referer": referer,
        }
        try:
            resp = await self._client.post(url, json=payload)
        except httpx.HTTPError as e:
            raise RegistrationFailed(f"registration service error: {e}") from e
        if not (200 <= resp.status_code < 300):
            logger.warning(
                "registration rejected",
                extra={"status_code": resp.status_code, "email": email},
            )
            raise RegistrationFailed(
                f"registration responded {resp.status_code}: {resp.text[:200]}"
            )

        account = _json_object(resp, "registration").get("account") or {}
        if not isinstance(account, dict) or not account.get("id"):
            raise RegistrationFailed("registration response has no account")
        return RegisteredAccount(id=str(account["id"]), email=account.get("email") or email)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
