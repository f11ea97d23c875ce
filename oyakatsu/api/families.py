"""Family & invite API endpoints."""

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from oyakatsu.api.deps import get_current_user, require_role
from oyakatsu.database import get_session
from oyakatsu.models.enums import UserRole
from oyakatsu.models.user import User
from oyakatsu.schemas.family import (
    FamilyCreateRequest,
    FamilyDetailResponse,
    FamilyMemberResponse,
    FamilyResponse,
    InviteCodeResponse,
    JoinFamilyRequest,
)
from oyakatsu.services import family_service
from oyakatsu.services.family_service import FamilySummary, InviteCode, MemberView
from oyakatsu.utils.clock import isoformat

router = APIRouter(prefix="/families", tags=["families"])


def _family_to_response(summary: FamilySummary) -> FamilyResponse:
    family = summary.family
    return FamilyResponse(
        id=family.id,
        name=family.name,
        icon_url=family.icon_url,
        created_by=family.created_by,
        member_count=summary.member_count,
        created_at=isoformat(family.created_at),
    )


def _member_to_response(view: MemberView) -> FamilyMemberResponse:
    return FamilyMemberResponse(
        id=view.member.id,
        user_id=view.member.user_id,
        display_name=view.user.display_name,
        avatar_url=view.user.avatar_url,
        role=view.member.role,
        joined_at=isoformat(view.member.joined_at),
    )


def _invite_to_response(invite: InviteCode) -> InviteCodeResponse:
    return InviteCodeResponse(code=invite.code, url=invite.url, expires_at=None)


@router.post("", response_model=FamilyResponse, status_code=status.HTTP_201_CREATED)
def create_family(
    request: FamilyCreateRequest,
    user: User = Depends(require_role(UserRole.PARENT)),
    session: Session = Depends(get_session),
):
    """Create a family. Parents only; the creator becomes its first member."""
    summary = family_service.create_family(user, request.name, session)
    return _family_to_response(summary)


@router.get("", response_model=list[FamilyResponse])
def list_families(
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """List families the current user is an active member of."""
    return [_family_to_response(s) for s in family_service.list_mine(user.id, session)]


@router.post("/join", response_model=FamilyResponse)
def join_family(
    request: JoinFamilyRequest,
    user: User = Depends(require_role(UserRole.CHILD)),
    session: Session = Depends(get_session),
):
    """Join a family with its invite code. Children only."""
    summary = family_service.join(user, request.invite_code, session)
    return _family_to_response(summary)


@router.get("/{family_id}", response_model=FamilyDetailResponse)
def get_family(
    family_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Get family info with all active members."""
    summary = family_service.get_detail(family_id, user.id, session)
    base = _family_to_response(summary)
    return FamilyDetailResponse(
        **base.model_dump(),
        members=[_member_to_response(m) for m in summary.members],
    )


@router.get("/{family_id}/members", response_model=list[FamilyMemberResponse])
def list_members(
    family_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    members = family_service.list_members(family_id, user.id, session)
    return [_member_to_response(m) for m in members]


@router.get("/{family_id}/invite-code", response_model=InviteCodeResponse)
def get_invite_code(
    family_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Get the family's invite code. Active parent members only."""
    return _invite_to_response(family_service.get_invite_code(family_id, user.id, session))


@router.post("/{family_id}/invite-code", response_model=InviteCodeResponse)
def regenerate_invite_code(
    family_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Replace the invite code; the old one stops working."""
    return _invite_to_response(family_service.regenerate_invite_code(family_id, user.id, session))


@router.post("/{family_id}/leave", status_code=status.HTTP_204_NO_CONTENT)
def leave_family(
    family_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Leave a family. The creator cannot leave."""
    family_service.leave(family_id, user.id, session)
