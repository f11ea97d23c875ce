"""Authentication API endpoints."""

from typing import Optional, Union

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from oyakatsu.api.deps import get_current_user, get_notifier
from oyakatsu.api.users import user_to_response
from oyakatsu.database import get_session
from oyakatsu.errors import MissingTokenError
from oyakatsu.models.enums import VerificationType
from oyakatsu.models.user import User
from oyakatsu.schemas.auth import (
    AuthResponse,
    LoginRequest,
    NewUserResponse,
    RefreshRequest,
    RegisterRequest,
    SendCodeRequest,
    SendCodeResponse,
    VerifyCodeRequest,
)
from oyakatsu.services import auth_service, token_service, verification_service
from oyakatsu.services.auth_service import LoginResult
from oyakatsu.services.notification_service import Notifier
from oyakatsu.services.token_service import TokenPair
from oyakatsu.utils.clock import isoformat

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(tokens: TokenPair, user: User) -> AuthResponse:
    return AuthResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        expires_in=tokens.expires_in,
        user=user_to_response(user),
    )


@router.post("/send-code", response_model=SendCodeResponse)
def send_code(
    request: SendCodeRequest,
    session: Session = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
):
    """Send a 6-digit verification code by SMS or email."""
    if request.phone_number:
        target, code_type = request.phone_number, VerificationType.PHONE
    else:
        target, code_type = request.email, VerificationType.EMAIL

    issued = verification_service.issue_code(target, code_type, session, notifier)
    return SendCodeResponse(
        expires_at=isoformat(issued.expires_at),
        retry_after=issued.retry_after,
    )


@router.post("/verify-code", response_model=Union[AuthResponse, NewUserResponse])
def verify_code(request: VerifyCodeRequest, session: Session = Depends(get_session)):
    """Verify a code. Existing users get tokens, new users are sent to /register."""
    result = auth_service.verify_and_lookup(
        request.code,
        session,
        phone_number=request.phone_number,
        email=request.email,
    )
    if isinstance(result, LoginResult):
        return _auth_response(result.tokens, result.user)
    return NewUserResponse(is_new_user=True, message="Registration required")


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(request: RegisterRequest, session: Session = Depends(get_session)):
    """Create an account with a code verified in the last few minutes."""
    result = auth_service.register(
        request.verification_code,
        request.display_name,
        session,
        phone_number=request.phone_number,
        email=request.email,
        password=request.password,
    )
    return _auth_response(result.tokens, result.user)


@router.post("/login", response_model=AuthResponse)
def login(request: LoginRequest, session: Session = Depends(get_session)):
    """Email/password login."""
    result = auth_service.login(request.email, request.password, session)
    return _auth_response(result.tokens, result.user)


@router.post("/refresh", response_model=AuthResponse)
def refresh(
    request: Optional[RefreshRequest] = None,
    session: Session = Depends(get_session),
):
    """Rotate a refresh token: the old one stops working."""
    if request is None or not request.refresh_token:
        raise MissingTokenError()
    tokens, user = token_service.rotate(request.refresh_token, session)
    return _auth_response(tokens, user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Logout: revoke every refresh token of the current user."""
    token_service.revoke_all(user.id, session)
