"""Family and invite schemas."""

from typing import Optional

from pydantic import Field

from oyakatsu.models.enums import UserRole
from oyakatsu.schemas.base import ApiModel


class FamilyCreateRequest(ApiModel):
    name: str = Field(min_length=1, max_length=50)


class FamilyResponse(ApiModel):
    id: str
    name: str
    icon_url: Optional[str]
    created_by: str
    member_count: int
    created_at: str


class FamilyMemberResponse(ApiModel):
    id: str
    user_id: str
    display_name: str
    avatar_url: Optional[str]
    role: UserRole
    joined_at: str


class FamilyDetailResponse(FamilyResponse):
    members: list[FamilyMemberResponse]


class InviteCodeResponse(ApiModel):
    code: str
    url: str
    expires_at: Optional[str] = None  # invite codes do not expire


class JoinFamilyRequest(ApiModel):
    invite_code: str = Field(min_length=1)
