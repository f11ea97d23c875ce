"""Token issuance, validation, rotation and revocation."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from sqlmodel import select

from oyakatsu.config import settings
from oyakatsu.errors import InvalidTokenError, TokenExpiredError
from oyakatsu.models.auth import RefreshToken
from oyakatsu.services.token_service import issue_pair, revoke_all, rotate, validate_access
from oyakatsu.utils.clock import as_utc, utcnow
from oyakatsu.utils.security import create_access_token, decode_token, hash_token


def test_issue_pair_persists_refresh_token(session, make_user):
    user = make_user()
    pair = issue_pair(user.id, session)
    session.commit()

    assert pair.expires_in == 900
    stored = session.exec(select(RefreshToken).where(RefreshToken.user_id == user.id)).one()
    assert stored.token_hash == hash_token(pair.refresh_token)
    assert stored.token_hash != pair.refresh_token
    assert timedelta(days=29) < as_utc(stored.expires_at) - utcnow() <= timedelta(days=30)


def test_token_claims(session, make_user):
    user = make_user()
    pair = issue_pair(user.id, session)

    access = decode_token(pair.access_token)
    refresh = decode_token(pair.refresh_token)
    assert access["sub"] == refresh["sub"] == user.id
    assert access["type"] == "access"
    assert refresh["type"] == "refresh"
    assert access["exp"] - access["iat"] == 15 * 60


def test_pairs_minted_together_are_distinct(session, make_user):
    user = make_user()
    first = issue_pair(user.id, session)
    second = issue_pair(user.id, session)
    session.commit()

    assert first.refresh_token != second.refresh_token
    assert first.access_token != second.access_token


def test_validate_access_returns_user_id(session, make_user):
    user = make_user()
    pair = issue_pair(user.id, session)
    assert validate_access(pair.access_token) == user.id


def test_expired_access_token():
    token = create_access_token("usr_1", expires_delta=timedelta(seconds=-5))
    with pytest.raises(TokenExpiredError):
        validate_access(token)


@pytest.mark.parametrize("token", ["", "not-a-jwt", "a.b.c"])
def test_malformed_access_token(token):
    with pytest.raises(InvalidTokenError):
        validate_access(token)


def test_access_token_signed_with_other_secret():
    token = jwt.encode(
        {"sub": "usr_1", "type": "access", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        "some-other-secret-that-is-long-enough-for-hs256",
        algorithm=settings.jwt_algorithm,
    )
    with pytest.raises(InvalidTokenError):
        validate_access(token)


def test_refresh_token_is_not_an_access_token(session, make_user):
    user = make_user()
    pair = issue_pair(user.id, session)
    with pytest.raises(InvalidTokenError):
        validate_access(pair.refresh_token)


def test_rotate_is_single_use(session, make_user):
    user = make_user()
    pair = issue_pair(user.id, session)
    session.commit()

    new_pair, rotated_user = rotate(pair.refresh_token, session)
    assert rotated_user.id == user.id
    assert new_pair.refresh_token != pair.refresh_token

    with pytest.raises(InvalidTokenError):
        rotate(pair.refresh_token, session)

    # the replacement still works exactly once
    rotate(new_pair.refresh_token, session)


def test_rotate_unknown_token(session):
    with pytest.raises(InvalidTokenError):
        rotate("never-issued", session)


def test_rotate_expired_stored_token(session, make_user):
    user = make_user()
    pair = issue_pair(user.id, session)
    stored = session.exec(select(RefreshToken).where(RefreshToken.user_id == user.id)).one()
    stored.expires_at = utcnow() - timedelta(seconds=1)
    session.add(stored)
    session.commit()

    with pytest.raises(InvalidTokenError):
        rotate(pair.refresh_token, session)


def test_revoke_all(session, make_user):
    user = make_user()
    other = make_user()
    first = issue_pair(user.id, session)
    issue_pair(user.id, session)
    kept = issue_pair(other.id, session)
    session.commit()

    assert revoke_all(user.id, session) == 2

    with pytest.raises(InvalidTokenError):
        rotate(first.refresh_token, session)
    rotate(kept.refresh_token, session)
