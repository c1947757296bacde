from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional

from workspace_auth.core.security import MAX_PASSWORD_LENGTH, MIN_PASSWORD_LENGTH, check_password_complexity
from workspace_auth.modules.users.schemas import UserResponse


class NewPassword(BaseModel):
    password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)
    password_confirm: str

    @field_validator("password")
    @classmethod
    def password_is_complex(cls, value: str) -> str:
        return check_password_complexity(value)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.password_confirm:
            raise ValueError("Passwords do not match")
        return self


class RegisterRequest(NewPassword):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr


class ResetPasswordRequest(NewPassword):
    token: str = Field(min_length=1)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class LoginData(BaseModel):
    user: UserResponse
    workspace: Optional[dict] = None


class LoginResponse(BaseModel):
    status: str = "success"
    token: str
    data: LoginData
