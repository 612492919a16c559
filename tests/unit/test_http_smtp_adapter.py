import json
import pytest
import httpx

from webauth.domain.errors import EmailDeliveryFailed
from webauth.infrastructure.email.http_smtp_adapter import HttpSmtpEmailAdapter


def make_adapter(handler) -> tuple[HttpSmtpEmailAdapter, httpx.AsyncClient]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    adapter = HttpSmtpEmailAdapter(
        base_url="http://smtp-mock:8025/",
        client=client,
        send_path="send",
    )
    return adapter, client


@pytest.mark.asyncio
async def test_send_verification_email_payload_and_idempotency():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["json"] = json.loads(request.content.decode("utf-8"))
        seen["idem"] = request.headers.get("Idempotency-Key")
        return httpx.Response(202, text="Accepted")

    adapter, client = make_adapter(handler)
    await adapter.send_verification_email(
        to="a@b.com",
        code="004211",
        confirmation_url="https://auth.example/v1/signup/k1",
        idempotency_key="k1:0",
    )

    assert seen["url"] == "http://smtp-mock:8025/send"
    assert seen["json"]["to"] == "a@b.com"
    assert seen["json"]["subject"]
    assert "004211" in seen["json"]["body"]
    assert "https://auth.example/v1/signup/k1" in seen["json"]["body"]
    assert seen["idem"] == "k1:0"

    await client.aclose()


@pytest.mark.asyncio
async def test_send_without_idempotency_key():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["idem"] = request.headers.get("Idempotency-Key")
        return httpx.Response(200, json={"ok": True})

    adapter, client = make_adapter(handler)
    await adapter.send_verification_email(
        to="a@b.com", code="000000", confirmation_url="http://x"
    )
    assert seen["idem"] is None

    await client.aclose()


@pytest.mark.asyncio
async def test_send_non_2xx_raises_delivery_failed():
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(422, text="nope")

    adapter, client = make_adapter(handler)
    with pytest.raises(EmailDeliveryFailed) as ei:
        await adapter.send_verification_email(
            to="x@y.com", code="000000", confirmation_url="http://x"
        )

    msg = str(ei.value)
    assert "SMTP responded 422" in msg
    assert "nope" in msg

    await client.aclose()


@pytest.mark.asyncio
async def test_network_error_is_wrapped_as_delivery_failed():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    adapter, client = make_adapter(handler)
    with pytest.raises(EmailDeliveryFailed) as ei:
        await adapter.send_verification_email(
            to="x@y.com", code="000000", confirmation_url="http://x"
        )

    assert "SMTP HTTP error:" in str(ei.value)

    await client.aclose()


@pytest.mark.asyncio
async def test_aclose_closes_owned_client_only():
    owned = HttpSmtpEmailAdapter(base_url="http://smtp-mock:8025")
    await owned.aclose()
    assert owned._client.is_closed  # type: ignore[attr-defined]

    shared_client = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda _: httpx.Response(200))
    )
    not_owned = HttpSmtpEmailAdapter(
        base_url="http://smtp-mock:8025", client=shared_client
    )

    await not_owned.aclose()
    assert shared_client.is_closed is False

    await shared_client.aclose()
