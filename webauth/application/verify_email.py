from webauth.application.verification_codes import (
    VerificationCodeService,
    VerifyResult,
)


async def verify_email(
    codes: VerificationCodeService, key: str, code: str
) -> VerifyResult:
    return await codes.verify_code(key, code.strip())
