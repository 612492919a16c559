from pydantic import BaseModel, EmailStr, Field


class SignupIn(BaseModel):
    email: EmailStr = Field(..., description="The email to verify", max_length=255)
    referer: str | None = Field(None, max_length=2048)
    return_url: str | None = Field(None, max_length=2048)
    client_id: str | None = Field(None, max_length=255)
    traffic_source: str | None = Field(None, max_length=255)


class VerifyEmailIn(BaseModel):
    key: str = Field(..., min_length=1, max_length=64)
    code: str = Field(..., min_length=6, max_length=6, pattern=r"^[0-9]{6}$")


class ResendCodeIn(BaseModel):
    key: str = Field(..., min_length=1, max_length=64)


class CompleteRegistrationIn(BaseModel):
    key: str = Field(..., min_length=1, max_length=64)
    code: str = Field(..., min_length=6, max_length=6, pattern=r"^[0-9]{6}$")
    password: str = Field(..., description="The password of the user", min_length=6)
    first_name: str | None = Field(None, max_length=255)
    last_name: str | None = Field(None, max_length=255)
