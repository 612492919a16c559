from webauth.application.verification_codes import VerificationCodeService
from webauth.domain.entities import VerificationCode
from webauth.domain.ports.email_port import EmailPort


def confirmation_url(public_base_url: str, key: str) -> str:
    return f"{public_base_url.rstrip('/')}/v1/signup/{key}"


async def start_signup(
    codes: VerificationCodeService,
    email_port: EmailPort,
    email: str,
    public_base_url: str,
    referer: str | None = None,
    return_url: str | None = None,
    client_id: str | None = None,
    traffic_source: str | None = None,
) -> VerificationCode:
    record = await codes.add_code(
        email,
        referer=referer,
        return_url=return_url,
        client_id=client_id,
        traffic_source=traffic_source,
    )
    await email_port.send_verification_email(
        to=record.email,
        code=record.code,
        confirmation_url=confirmation_url(public_base_url, record.key),
        idempotency_key=f"{record.key}:{record.resend_count}",
    )
    return record
