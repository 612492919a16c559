from __future__ import annotations

import logging
from typing import Optional
import httpx

logger = logging.getLogger(__name__)

USER_AGENT = "webauth-signup"

_client: Optional[httpx.AsyncClient] = None


async def _log_upstream_error(response: httpx.Response) -> None:
    if response.is_error:
        logger.warning(
            "upstream responded with an error",
            extra={
                "method": response.request.method,
                # no query string: it may carry the email being looked up
                "host": response.request.url.host,
                "path": response.request.url.path,
                "status_code": response.status_code,
            },
        )


async def open_http_client(
    timeout: float = 10.0,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """
    Create the AsyncClient shared by the email and registration adapters.

    Calling it again while a client is open returns that client unchanged.
    Every error response from an upstream service is logged once here, so the
    adapters only have to translate it into their own exception.
    """
    global _client
    if _client is None:
        _client = httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": USER_AGENT},
            event_hooks={"response": [_log_upstream_error]},
            transport=transport,
        )
    return _client


def get_http_client() -> httpx.AsyncClient:
    if _client is None:
        raise RuntimeError(
            "HTTP client not opened yet. Call open_http_client() at startup."
        )
    return _client


async def close_http_client() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
