import logging
from urllib.parse import urlsplit

from webauth.application.verification_codes import VerificationCodeService
from webauth.domain.errors import EmailAlreadyRegistered, InvalidVerificationCode
from webauth.domain.ports.accounts import RegisteredAccount, RegistrationPort

logger = logging.getLogger(__name__)


def _referer_host(referer: str) -> str | None:
    if not referer:
        return None
    return urlsplit(referer).hostname or None


async def complete_registration(
    codes: VerificationCodeService,
    registration: RegistrationPort,
    key: str,
    code: str,
    password: str,
    first_name: str | None = None,
    last_name: str | None = None,
    ip: str | None = None,
    user_agent: str | None = None,
) -> RegisteredAccount:
    result = await codes.verify_code(key, code.strip())
    if not result.matched or result.record is None:
        raise InvalidVerificationCode()
    if result.email_already_registered:
        raise EmailAlreadyRegistered(result.record.email)

    record = result.record
    account = await registration.register(
        email=record.email,
        password=password,
        first_name=first_name,
        last_name=last_name,
        ip=ip,
        user_agent=user_agent,
        referer=_referer_host(record.referer),
    )
    await codes.delete_codes(record.email)
    logger.info(
        "registration completed", extra={"account_id": account.id, "key": key}
    )
    return account
