"""User record operations: profile, one-time role assignment, device tokens."""

import logging

from sqlmodel import Session, select

from oyakatsu.errors import RoleAlreadySetError
from oyakatsu.models.enums import DevicePlatform, UserRole
from oyakatsu.models.user import DeviceToken, User
from oyakatsu.utils.clock import utcnow

logger = logging.getLogger(__name__)


def update_profile(user: User, session: Session, display_name: str | None = None) -> User:
    if display_name is not None:
        user.display_name = display_name
    user.updated_at = utcnow()
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def set_role(user: User, role: UserRole, session: Session) -> User:
    """Assign the user's role. A role can be set only once."""
    if user.role is not None:
        raise RoleAlreadySetError()

    user.role = role
    user.updated_at = utcnow()
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info("User %s set role %s", user.id, role.value)
    return user


def register_device_token(
    user: User,
    token: str,
    platform: DevicePlatform,
    session: Session,
) -> DeviceToken:
    """Upsert a push token for the user; the platform is updated if it exists."""
    device = session.exec(
        select(DeviceToken).where(DeviceToken.user_id == user.id, DeviceToken.token == token)
    ).first()
    if device:
        device.platform = platform
        device.updated_at = utcnow()
    else:
        device = DeviceToken(user_id=user.id, token=token, platform=platform)
    session.add(device)
    session.commit()
    session.refresh(device)
    return device
