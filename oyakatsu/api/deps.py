"""Common API dependencies: current user extraction, role checks, notifier."""

from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from oyakatsu.database import get_session
from oyakatsu.errors import ForbiddenError, RoleRequiredError, UnauthorizedError
from oyakatsu.models.enums import UserRole
from oyakatsu.models.user import User
from oyakatsu.services.notification_service import Notifier
from oyakatsu.services.token_service import validate_access

# auto_error=False: a missing or non-Bearer header reaches get_current_user as None.
bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> User:
    """Resolve the bearer access token to a user."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError()

    user_id = validate_access(credentials.credentials)

    user = session.get(User, user_id)
    if not user:
        raise UnauthorizedError("User not found")
    return user


def check_role(user: User, expected: UserRole) -> User:
    if user.role is None:
        raise RoleRequiredError()
    if user.role != expected:
        raise ForbiddenError()
    return user


def require_role(expected: UserRole) -> Callable[..., User]:
    """Dependency factory: the current user must have exactly this role."""

    def dependency(user: User = Depends(get_current_user)) -> User:
        return check_role(user, expected)

    return dependency


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier
