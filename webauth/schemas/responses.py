from typing import Literal

from pydantic import BaseModel, Field


class SignupAcceptedOut(BaseModel):
    status: Literal["accepted"] = "accepted"
    key: str = Field(..., description="Token identifying the pending verification")


class SignupOut(BaseModel):
    key: str
    email: str
    resend_count: int
    referer: str
    return_url: str


class VerifyEmailOut(BaseModel):
    matched: bool
    email_taken: bool


class ResendCodeOut(BaseModel):
    status: Literal["sent", "limit_reached"]
    resend_count: int


class AccountOut(BaseModel):
    account_id: str
    email: str
