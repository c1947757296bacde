from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional
from datetime import datetime

from workspace_auth.core.security import MAX_PASSWORD_LENGTH, MIN_PASSWORD_LENGTH, check_password_complexity


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    email_verified: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserWithCredentials(UserResponse):
    """Internal view used by login; the hash never leaves the auth module."""
    password: str


class UpdatePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1, max_length=MAX_PASSWORD_LENGTH)
    new_password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)
    confirm_password: str

    @field_validator("new_password")
    @classmethod
    def new_password_is_complex(cls, value: str) -> str:
        return check_password_complexity(value)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class ChangeEmailRequest(BaseModel):
    email: EmailStr


class AccountToken(BaseModel):
    """Row of email_verifications / password_resets"""
    user_id: str
    token: str
    expires_at: datetime


class PendingEmailChange(BaseModel):
    id: str
    pending_email: Optional[str] = None
    pending_email_expires_at: Optional[datetime] = None
