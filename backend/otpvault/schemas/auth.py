from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_serializer, field_validator

from otpvault.models._time import as_utc
from otpvault.security.sanitizer import InputSanitizer


class OtpRequestIn(BaseModel):
    """Ask for a login code to be emailed."""
    model_config = ConfigDict(extra='forbid')

    email: EmailStr

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return InputSanitizer.normalize_email(v)


class OtpRequestOut(BaseModel):
    model_config = ConfigDict(extra='forbid')

    status: str = "sent"
    expires_at: datetime

    @field_serializer('expires_at')
    def serialize_expires_at(self, v: datetime) -> datetime:
        return as_utc(v)


class OtpVerifyIn(BaseModel):
    model_config = ConfigDict(extra='forbid')

    email: EmailStr
    code: str = Field(
        min_length=6,
        max_length=6,
        pattern=r'^[0-9]{6}$',
        description="6-digit code from the email (leading zeros kept)",
    )

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return InputSanitizer.normalize_email(v)


class TokenOut(BaseModel):
    model_config = ConfigDict(extra='forbid')

    access_token: str
    token_type: str = "bearer"
    account_id: int
    email: str
    new_account: bool


class AccountOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    email_verified: bool
    created_at: datetime

    @field_serializer('created_at')
    def serialize_created_at(self, v: datetime) -> datetime:
        return as_utc(v)
