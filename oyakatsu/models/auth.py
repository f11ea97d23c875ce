"""Verification code and refresh token models."""

import secrets
from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from oyakatsu.models.enums import VerificationType
from oyakatsu.utils.clock import utcnow


class VerificationCode(SQLModel, table=True):
    __tablename__ = "verification_codes"

    id: str = Field(default_factory=lambda: f"vcd_{secrets.token_hex(6)}", primary_key=True)
    target: str = Field(index=True)  # phone number or email
    code: str
    type: VerificationType
    expires_at: datetime
    used_at: Optional[datetime] = None  # also set when superseded by a newer code
    verified: bool = Field(default=False)  # True only when accepted by verify-code
    created_at: datetime = Field(default_factory=utcnow)


class RefreshToken(SQLModel, table=True):
    __tablename__ = "refresh_tokens"

    id: str = Field(default_factory=lambda: f"rtk_{secrets.token_hex(6)}", primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    token_hash: str = Field(unique=True)  # sha256 of the raw token
    expires_at: datetime
    created_at: datetime = Field(default_factory=utcnow)
