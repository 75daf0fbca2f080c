"""
Auth schemas: request bodies and responses for signup, sign-in, OTP and sessions.

Password length and email-domain policy are enforced in the services (so the
same rules apply to every caller), not here.
"""
from pydantic import BaseModel, EmailStr, field_validator
from typing import Optional

from identity_api.models.user import Gender


def normalise_gender(v):
    # Older clients send "non binary"
    if isinstance(v, str):
        v = v.strip().lower()
        if v == "non binary":
            return Gender.non_binary.value
    return v


class SessionClaims(BaseModel):
    """What a live session knows about its user. Identity in the DB is the source of truth."""
    id: str
    name: str
    email: str
    avatar: Optional[str] = None
    gender: Optional[str] = None


class SendOTPRequest(BaseModel):
    email: EmailStr


class SignupRequest(BaseModel):
    name: str
    email: EmailStr
    password: str
    gender: Gender
    otp: str
    hash: str

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be empty")
        return v

    @field_validator("gender", mode="before")
    @classmethod
    def gender_alias(cls, v):
        return normalise_gender(v)


class SignInRequest(BaseModel):
    email: EmailStr
    password: str


class ForgotPasswordRequest(BaseModel):
    name: str
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    email: EmailStr
    otp: str
    hash: str
    new_password: str


class OTPSentResponse(BaseModel):
    message: str = "OTP sent successfully"
    # Challenge token; clients echo it back verbatim
    hash: str


class SignInResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: SessionClaims


class SessionResponse(BaseModel):
    user: SessionClaims


class MessageResponse(BaseModel):
    message: str
