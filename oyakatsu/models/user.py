"""User and device token models."""

import secrets
from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from oyakatsu.models.enums import DevicePlatform, UserRole
from oyakatsu.utils.clock import utcnow


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: str = Field(default_factory=lambda: f"usr_{secrets.token_hex(6)}", primary_key=True)
    phone_number: Optional[str] = Field(default=None, unique=True, index=True)
    email: Optional[str] = Field(default=None, unique=True, index=True)
    password_hash: Optional[str] = None  # phone-only accounts have none
    display_name: str
    avatar_url: Optional[str] = None
    role: Optional[UserRole] = None  # set once via POST /users/me/role
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class DeviceToken(SQLModel, table=True):
    __tablename__ = "device_tokens"
    __table_args__ = (UniqueConstraint("user_id", "token", name="uq_device_tokens_user_token"),)

    id: str = Field(default_factory=lambda: f"dvt_{secrets.token_hex(6)}", primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    token: str
    platform: DevicePlatform
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
