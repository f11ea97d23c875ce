"""User profile API endpoints."""

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from oyakatsu.api.deps import get_current_user
from oyakatsu.database import get_session
from oyakatsu.errors import NotImplementedFeatureError
from oyakatsu.models.user import User
from oyakatsu.schemas.user import (
    DeviceTokenRequest,
    SetRoleRequest,
    UserResponse,
    UserUpdateRequest,
)
from oyakatsu.services import user_service
from oyakatsu.utils.clock import isoformat

router = APIRouter(prefix="/users", tags=["users"])


def user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        phone_number=user.phone_number,
        email=user.email,
        display_name=user.display_name,
        avatar_url=user.avatar_url,
        role=user.role,
        created_at=isoformat(user.created_at),
        updated_at=isoformat(user.updated_at),
    )


@router.get("/me", response_model=UserResponse)
def get_my_profile(user: User = Depends(get_current_user)):
    """Get current user's profile."""
    return user_to_response(user)


@router.patch("/me", response_model=UserResponse)
def update_my_profile(
    request: UserUpdateRequest,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Update current user's profile."""
    user = user_service.update_profile(user, session, display_name=request.display_name)
    return user_to_response(user)


@router.post("/me/role", response_model=UserResponse)
def set_my_role(
    request: SetRoleRequest,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Choose parent or child. Can only be done once."""
    user = user_service.set_role(user, request.role, session)
    return user_to_response(user)


@router.post("/me/device-token", status_code=status.HTTP_204_NO_CONTENT)
def register_device_token(
    request: DeviceTokenRequest,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Register a push notification token for this device."""
    user_service.register_device_token(user, request.token, request.platform, session)


@router.post("/me/avatar")
def upload_avatar(user: User = Depends(get_current_user)):
    # TODO: store the upload in object storage and set user.avatar_url
    raise NotImplementedFeatureError()
