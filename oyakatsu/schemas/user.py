"""User profile schemas."""

from typing import Optional

from pydantic import Field

from oyakatsu.models.enums import DevicePlatform, UserRole
from oyakatsu.schemas.base import ApiModel


class UserResponse(ApiModel):
    id: str
    phone_number: Optional[str]
    email: Optional[str]
    display_name: str
    avatar_url: Optional[str]
    role: Optional[UserRole]
    created_at: str
    updated_at: str


class UserUpdateRequest(ApiModel):
    display_name: Optional[str] = Field(default=None, min_length=1, max_length=50)


class SetRoleRequest(ApiModel):
    role: UserRole


class DeviceTokenRequest(ApiModel):
    token: str = Field(min_length=1)
    platform: DevicePlatform
