"""Family and membership models."""

import secrets
from datetime import datetime
from typing import Optional

from sqlalchemy import Index, text
from sqlmodel import Field, SQLModel

from oyakatsu.models.enums import MemberStatus, UserRole
from oyakatsu.utils.clock import utcnow


class Family(SQLModel, table=True):
    __tablename__ = "families"

    id: str = Field(default_factory=lambda: f"fam_{secrets.token_hex(6)}", primary_key=True)
    name: str
    icon_url: Optional[str] = None
    invite_code: str = Field(unique=True, index=True)
    created_by: str = Field(foreign_key="users.id")
    created_at: datetime = Field(default_factory=utcnow)


class FamilyMember(SQLModel, table=True):
    __tablename__ = "family_members"
    __table_args__ = (
        # A user holds at most one active membership system-wide.
        Index(
            "uq_family_members_active_user",
            "user_id",
            unique=True,
            sqlite_where=text("status = 'ACTIVE'"),
        ),
    )

    id: str = Field(default_factory=lambda: f"fmm_{secrets.token_hex(6)}", primary_key=True)
    family_id: str = Field(foreign_key="families.id", index=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    role: UserRole
    status: MemberStatus = Field(default=MemberStatus.ACTIVE)
    joined_at: datetime = Field(default_factory=utcnow)
    left_at: Optional[datetime] = None
