"""Identity resolution: verification-code login, registration, password login.

verify_and_lookup returns either a LoginResult (the target already has an
account, tokens are issued) or a NewUserResult (the client should go on to
register with the same target and code).
"""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from oyakatsu.errors import InvalidCredentialsError, UserExistsError
from oyakatsu.models.user import User
from oyakatsu.services.token_service import TokenPair, issue_pair
from oyakatsu.services.verification_service import consume_code, ensure_recently_consumed
from oyakatsu.utils.security import hash_password, verify_password

logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    user: User
    tokens: TokenPair


@dataclass
class NewUserResult:
    target: str


def find_user_by_target(
    session: Session,
    phone_number: str | None = None,
    email: str | None = None,
) -> User | None:
    """Look up a user by phone number, or by email when no phone is given."""
    if phone_number:
        query = select(User).where(User.phone_number == phone_number)
    elif email:
        query = select(User).where(User.email == email)
    else:
        return None
    return session.exec(query).first()


def verify_and_lookup(
    code: str,
    session: Session,
    phone_number: str | None = None,
    email: str | None = None,
) -> LoginResult | NewUserResult:
    target = phone_number or email
    consume_code(target, code, session)

    user = find_user_by_target(session, phone_number=phone_number, email=email)
    if not user:
        session.commit()
        return NewUserResult(target=target)

    tokens = issue_pair(user.id, session)
    session.commit()
    session.refresh(user)
    logger.info("User %s signed in with a verification code", user.id)
    return LoginResult(user=user, tokens=tokens)


def register(
    code: str,
    display_name: str,
    session: Session,
    phone_number: str | None = None,
    email: str | None = None,
    password: str | None = None,
) -> LoginResult:
    """Create an account for a target whose code was verified recently."""
    target = phone_number or email
    ensure_recently_consumed(target, code, session)

    if find_user_by_target(session, phone_number=phone_number, email=email):
        raise UserExistsError()

    user = User(
        phone_number=phone_number,
        email=email,
        password_hash=hash_password(password) if password else None,
        display_name=display_name,
    )
    try:
        with session.begin_nested():
            session.add(user)
    except IntegrityError:
        # The secondary identifier (e.g. email next to a phone) is taken.
        raise UserExistsError()

    tokens = issue_pair(user.id, session)
    session.commit()
    session.refresh(user)
    logger.info("Registered user %s", user.id)
    return LoginResult(user=user, tokens=tokens)


def login(email: str, password: str, session: Session) -> LoginResult:
    """Password login. Unknown email, no password, and wrong password look the same."""
    user = find_user_by_target(session, email=email)
    if not user or not user.password_hash:
        raise InvalidCredentialsError()
    if not verify_password(password, user.password_hash):
        raise InvalidCredentialsError()

    tokens = issue_pair(user.id, session)
    session.commit()
    session.refresh(user)
    logger.info("User %s signed in with a password", user.id)
    return LoginResult(user=user, tokens=tokens)
