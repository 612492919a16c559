from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status

from webauth.application.complete_registration import complete_registration
from webauth.application.resend_code import ResendOutcome, resend_code
from webauth.application.start_signup import start_signup
from webauth.application.verification_codes import VerificationCodeService
from webauth.application.verify_email import verify_email
from webauth.domain.errors import (
    EmailAlreadyRegistered,
    InvalidVerificationCode,
    RegistrationFailed,
)
from webauth.domain.ports.accounts import RegistrationPort
from webauth.domain.ports.email_port import EmailPort
from webauth.presentation.dependencies import (
    get_app_settings,
    get_email_port,
    get_registration,
    get_verification_codes,
)
from webauth.schemas.requests import (
    CompleteRegistrationIn,
    ResendCodeIn,
    SignupIn,
    VerifyEmailIn,
)
from webauth.schemas.responses import (
    AccountOut,
    ResendCodeOut,
    SignupAcceptedOut,
    SignupOut,
    VerifyEmailOut,
)
from webauth.settings import Settings

router = APIRouter(prefix="/signup", tags=["Signup"])

Codes = Annotated[VerificationCodeService, Depends(get_verification_codes)]
Email = Annotated[EmailPort, Depends(get_email_port)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]


@router.post(
    "",
    status_code=202,
    response_model=SignupAcceptedOut,
)
async def post_signup(
    body: SignupIn, codes: Codes, email_port: Email, settings: AppSettings
):
    record = await start_signup(
        codes=codes,
        email_port=email_port,
        email=body.email,
        public_base_url=settings.public_base_url,
        referer=body.referer,
        return_url=body.return_url,
        client_id=body.client_id,
        traffic_source=body.traffic_source,
    )
    return SignupAcceptedOut(key=record.key)


@router.get("/{key}", response_model=SignupOut)
async def get_signup(key: str, codes: Codes):
    record = await codes.get_code(key)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="unknown verification key"
        )
    # never expose the code itself
    return SignupOut(
        key=record.key,
        email=record.email,
        resend_count=record.resend_count,
        referer=record.referer,
        return_url=record.return_url,
    )


@router.post("/verify-email", response_model=VerifyEmailOut)
async def post_verify_email(body: VerifyEmailIn, codes: Codes):
    result = await verify_email(codes, body.key, body.code)
    return VerifyEmailOut(
        matched=result.matched, email_taken=result.email_already_registered
    )


@router.post("/resend-code", response_model=ResendCodeOut)
async def post_resend_code(
    body: ResendCodeIn, codes: Codes, email_port: Email, settings: AppSettings
):
    result = await resend_code(
        codes=codes,
        email_port=email_port,
        key=body.key,
        public_base_url=settings.public_base_url,
        resend_limit=settings.resend_limit,
    )
    if result.outcome is ResendOutcome.NOT_FOUND:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="unknown verification key"
        )
    return ResendCodeOut(status=result.outcome.value, resend_count=result.resend_count)


@router.post("/complete", status_code=201, response_model=AccountOut)
async def post_complete(
    body: CompleteRegistrationIn,
    request: Request,
    codes: Codes,
    registration: Annotated[RegistrationPort, Depends(get_registration)],
):
    try:
        account = await complete_registration(
            codes=codes,
            registration=registration,
            key=body.key,
            code=body.code,
            password=body.password,
            first_name=body.first_name,
            last_name=body.last_name,
            ip=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
        )
    except InvalidVerificationCode:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="invalid verification code"
        )
    except EmailAlreadyRegistered:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="email already registered"
        )
    except RegistrationFailed:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="technical problems during registration",
        )
    return AccountOut(account_id=account.id, email=account.email)
