"""Auth request/response schemas."""

from typing import Literal, Optional

from pydantic import EmailStr, Field, model_validator

from oyakatsu.schemas.base import ApiModel
from oyakatsu.schemas.user import UserResponse

PHONE_PATTERN = r"^\+?[0-9]{6,15}$"


class TargetRequest(ApiModel):
    phone_number: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    email: Optional[EmailStr] = None

    @model_validator(mode="after")
    def _require_target(self):
        if not self.phone_number and not self.email:
            raise ValueError("phoneNumber or email is required")
        return self


# --- Verification ---

class SendCodeRequest(TargetRequest):
    pass


class SendCodeResponse(ApiModel):
    expires_at: str
    retry_after: int


class VerifyCodeRequest(TargetRequest):
    code: str = Field(min_length=4, max_length=6)


class NewUserResponse(ApiModel):
    is_new_user: Literal[True]
    message: str


# --- Registration / Login ---

class RegisterRequest(TargetRequest):
    password: Optional[str] = Field(default=None, min_length=8)
    display_name: str = Field(min_length=1, max_length=50)
    verification_code: str = Field(min_length=4, max_length=6)


class LoginRequest(ApiModel):
    email: EmailStr
    password: str


class AuthResponse(ApiModel):
    access_token: str
    refresh_token: str
    expires_in: int
    user: UserResponse


# --- Refresh ---

class RefreshRequest(ApiModel):
    refresh_token: Optional[str] = None
