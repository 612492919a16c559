import logging
from dataclasses import dataclass
from enum import Enum

from webauth.application.start_signup import confirmation_url
from webauth.application.verification_codes import VerificationCodeService
from webauth.domain.errors import RecordNotFound
from webauth.domain.ports.email_port import EmailPort

logger = logging.getLogger(__name__)


class ResendOutcome(str, Enum):
    SENT = "sent"
    LIMIT_REACHED = "limit_reached"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class ResendResult:
    outcome: ResendOutcome
    resend_count: int = 0


async def resend_code(
    codes: VerificationCodeService,
    email_port: EmailPort,
    key: str,
    public_base_url: str,
    resend_limit: int = 2,
) -> ResendResult:
    current = await codes.get_code(key)
    if current is None:
        return ResendResult(ResendOutcome.NOT_FOUND)
    if current.resend_count >= resend_limit:
        logger.info("resend limit reached", extra={"key": key})
        return ResendResult(ResendOutcome.LIMIT_REACHED, current.resend_count)

    try:
        updated, regenerated = await codes.regenerate_code(key, resend_limit)
    except RecordNotFound:
        return ResendResult(ResendOutcome.NOT_FOUND)
    if not regenerated:
        # a concurrent resend took the last slot
        return ResendResult(ResendOutcome.LIMIT_REACHED, updated.resend_count)

    await email_port.send_verification_email(
        to=updated.email,
        code=updated.code,
        confirmation_url=confirmation_url(public_base_url, updated.key),
        idempotency_key=f"{updated.key}:{updated.resend_count}",
    )
    return ResendResult(ResendOutcome.SENT, updated.resend_count)
