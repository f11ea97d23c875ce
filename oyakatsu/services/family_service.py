"""Family membership lifecycle.

Invariants:
- a user holds at most one active membership across all families
  (also enforced by a partial unique index on family_members.user_id);
- invite codes are unique across families (unique index, regenerated on
  conflict);
- a family never has more than settings.family_max_members active members;
- the family creator cannot leave.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, func, select

from oyakatsu.config import settings
from oyakatsu.errors import (
    AlreadyMemberError,
    CannotLeaveError,
    FamilyFullError,
    ForbiddenError,
    InvalidInviteCodeError,
    NotFoundError,
    NotMemberError,
)
from oyakatsu.models.enums import MemberStatus, UserRole
from oyakatsu.models.family import Family, FamilyMember
from oyakatsu.models.user import User
from oyakatsu.utils.clock import utcnow
from oyakatsu.utils.security import generate_invite_code

logger = logging.getLogger(__name__)


@dataclass
class MemberView:
    member: FamilyMember
    user: User


@dataclass
class FamilySummary:
    family: Family
    member_count: int
    members: list[MemberView] = field(default_factory=list)


@dataclass
class InviteCode:
    code: str
    url: str


# --- Queries ---

def count_active_members(family_id: str, session: Session) -> int:
    return session.exec(
        select(func.count()).select_from(FamilyMember).where(
            FamilyMember.family_id == family_id,
            FamilyMember.status == MemberStatus.ACTIVE,
        )
    ).one()


def get_active_membership(
    user_id: str,
    session: Session,
    family_id: str | None = None,
) -> FamilyMember | None:
    query = select(FamilyMember).where(
        FamilyMember.user_id == user_id,
        FamilyMember.status == MemberStatus.ACTIVE,
    )
    if family_id is not None:
        query = query.where(FamilyMember.family_id == family_id)
    return session.exec(query).first()


def _require_membership(
    family_id: str,
    user_id: str,
    session: Session,
    role: UserRole | None = None,
) -> FamilyMember:
    membership = get_active_membership(user_id, session, family_id=family_id)
    if not membership or (role is not None and membership.role != role):
        raise ForbiddenError("No permission for this family")
    return membership


def _active_roster(family_id: str, session: Session) -> list[MemberView]:
    rows = session.exec(
        select(FamilyMember, User)
        .join(User, User.id == FamilyMember.user_id)
        .where(
            FamilyMember.family_id == family_id,
            FamilyMember.status == MemberStatus.ACTIVE,
        )
        .order_by(FamilyMember.joined_at)
    ).all()
    return [MemberView(member=m, user=u) for m, u in rows]


def _invite(family: Family) -> InviteCode:
    return InviteCode(code=family.invite_code, url=f"{settings.invite_url_base}{family.invite_code}")


# --- Operations ---

def create_family(owner: User, name: str, session: Session) -> FamilySummary:
    """Create a family and seed the owner as its first (parent) member."""
    if get_active_membership(owner.id, session):
        raise AlreadyMemberError()

    for attempt in range(1, settings.invite_code_attempts + 1):
        family = Family(name=name, invite_code=generate_invite_code(), created_by=owner.id)
        try:
            with session.begin_nested():
                session.add(family)
            break
        except IntegrityError:
            if attempt == settings.invite_code_attempts:
                raise
            logger.warning("Invite code collision on create, regenerating (attempt %d)", attempt)

    try:
        with session.begin_nested():
            session.add(
                FamilyMember(family_id=family.id, user_id=owner.id, role=UserRole.PARENT)
            )
    except IntegrityError:
        session.rollback()
        raise AlreadyMemberError()

    session.commit()
    session.refresh(family)
    logger.info("User %s created family %s", owner.id, family.id)
    return FamilySummary(family=family, member_count=1)


def list_mine(user_id: str, session: Session) -> list[FamilySummary]:
    families = session.exec(
        select(Family)
        .join(FamilyMember, FamilyMember.family_id == Family.id)
        .where(
            FamilyMember.user_id == user_id,
            FamilyMember.status == MemberStatus.ACTIVE,
        )
    ).all()
    return [
        FamilySummary(family=f, member_count=count_active_members(f.id, session))
        for f in families
    ]


def get_detail(family_id: str, user_id: str, session: Session) -> FamilySummary:
    _require_membership(family_id, user_id, session)

    family = session.get(Family, family_id)
    if not family:
        raise NotFoundError("Family not found")

    members = _active_roster(family_id, session)
    return FamilySummary(family=family, member_count=len(members), members=members)


def list_members(family_id: str, user_id: str, session: Session) -> list[MemberView]:
    _require_membership(family_id, user_id, session)
    return _active_roster(family_id, session)


def get_invite_code(family_id: str, user_id: str, session: Session) -> InviteCode:
    _require_membership(family_id, user_id, session, role=UserRole.PARENT)

    family = session.get(Family, family_id)
    if not family:
        raise NotFoundError("Family not found")
    return _invite(family)


def regenerate_invite_code(family_id: str, user_id: str, session: Session) -> InviteCode:
    _require_membership(family_id, user_id, session, role=UserRole.PARENT)

    family = session.get(Family, family_id)
    if not family:
        raise NotFoundError("Family not found")

    previous = family.invite_code
    for attempt in range(1, settings.invite_code_attempts + 1):
        try:
            with session.begin_nested():
                family.invite_code = generate_invite_code()
                session.add(family)
            break
        except IntegrityError:
            if attempt == settings.invite_code_attempts:
                raise
            logger.warning("Invite code collision on regenerate, retrying (attempt %d)", attempt)

    session.commit()
    session.refresh(family)
    logger.info("Invite code of family %s regenerated (was %s)", family.id, previous)
    return _invite(family)


def join(user: User, invite_code: str, session: Session) -> FamilySummary:
    """Add the user to the family behind the invite code as a child member."""
    if get_active_membership(user.id, session):
        raise AlreadyMemberError()

    family = session.exec(select(Family).where(Family.invite_code == invite_code)).first()
    if not family:
        raise InvalidInviteCodeError()

    member_count = count_active_members(family.id, session)
    if member_count >= settings.family_max_members:
        raise FamilyFullError()

    try:
        with session.begin_nested():
            session.add(FamilyMember(family_id=family.id, user_id=user.id, role=UserRole.CHILD))
    except IntegrityError:
        raise AlreadyMemberError()

    session.commit()
    session.refresh(family)
    logger.info("User %s joined family %s", user.id, family.id)
    return FamilySummary(family=family, member_count=member_count + 1)


def leave(family_id: str, user_id: str, session: Session) -> None:
    membership = get_active_membership(user_id, session, family_id=family_id)
    if not membership:
        raise NotMemberError()

    family = session.get(Family, family_id)
    if family and family.created_by == user_id:
        raise CannotLeaveError()

    membership.status = MemberStatus.LEFT
    membership.left_at = utcnow()
    session.add(membership)
    session.commit()
    logger.info("User %s left family %s", user_id, family_id)
