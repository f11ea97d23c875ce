"""Access/refresh token issuance, validation and rotation."""

import logging
from dataclasses import dataclass
from datetime import timedelta

import jwt
from sqlmodel import Session, select

from oyakatsu.config import settings
from oyakatsu.errors import InvalidTokenError, TokenExpiredError
from oyakatsu.models.auth import RefreshToken
from oyakatsu.models.user import User
from oyakatsu.utils.clock import as_utc, utcnow
from oyakatsu.utils.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_token,
)

logger = logging.getLogger(__name__)


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int


def issue_pair(user_id: str, session: Session) -> TokenPair:
    """Mint an access/refresh pair and store the refresh token. The caller commits."""
    access_token = create_access_token(user_id)
    refresh_token = create_refresh_token(user_id)

    session.add(
        RefreshToken(
            user_id=user_id,
            token_hash=hash_token(refresh_token),
            expires_at=utcnow() + timedelta(days=settings.refresh_token_expire_days),
        )
    )
    session.flush()

    return TokenPair(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.access_token_expire_seconds,
    )


def validate_access(token: str) -> str:
    """Verify an access token and return its user id."""
    try:
        payload = decode_token(token)
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError()
    except jwt.PyJWTError:
        raise InvalidTokenError()

    if payload.get("type") != "access" or not payload.get("sub"):
        raise InvalidTokenError()
    return payload["sub"]


def rotate(refresh_token: str, session: Session) -> tuple[TokenPair, User]:
    """Exchange a stored refresh token for a new pair.

    The old row is deleted and the new one inserted in the same transaction,
    so a refresh token is accepted at most once.
    """
    stored = session.exec(
        select(RefreshToken).where(RefreshToken.token_hash == hash_token(refresh_token))
    ).first()
    if not stored or as_utc(stored.expires_at) <= utcnow():
        raise InvalidTokenError("Refresh token is invalid")

    user = session.get(User, stored.user_id)
    if not user:
        raise InvalidTokenError("Refresh token is invalid")

    session.delete(stored)
    session.flush()
    pair = issue_pair(user.id, session)
    session.commit()
    session.refresh(user)

    logger.info("Rotated refresh token for %s", user.id)
    return pair, user


def revoke_all(user_id: str, session: Session) -> int:
    """Delete every refresh token of the user (logout). Returns the count."""
    tokens = session.exec(select(RefreshToken).where(RefreshToken.user_id == user_id)).all()
    for token in tokens:
        session.delete(token)
    session.commit()
    logger.info("Revoked %d refresh token(s) for %s", len(tokens), user_id)
    return len(tokens)
