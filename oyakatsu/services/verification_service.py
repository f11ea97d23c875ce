"""One-time verification codes.

At most one unused code exists per target: issuing a new code marks every
older unused one as used. Expiry is checked when a code is read.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlmodel import Session, col, select

from oyakatsu.config import settings
from oyakatsu.errors import InvalidCodeError, InvalidVerificationError
from oyakatsu.models.auth import VerificationCode
from oyakatsu.models.enums import VerificationType
from oyakatsu.services.notification_service import NotificationError, Notifier
from oyakatsu.utils.clock import as_utc, utcnow
from oyakatsu.utils.security import generate_verification_code

logger = logging.getLogger(__name__)


@dataclass
class IssuedCode:
    expires_at: datetime
    retry_after: int


def issue_code(
    target: str,
    code_type: VerificationType,
    session: Session,
    notifier: Notifier,
) -> IssuedCode:
    """Invalidate outstanding codes for the target, store a new one and send it."""
    now = utcnow()

    outstanding = session.exec(
        select(VerificationCode).where(
            VerificationCode.target == target,
            VerificationCode.used_at == None,  # noqa: E711
        )
    ).all()
    for row in outstanding:
        row.used_at = now
        session.add(row)

    code = generate_verification_code()
    expires_at = now + timedelta(minutes=settings.verification_code_expire_minutes)
    session.add(
        VerificationCode(target=target, code=code, type=code_type, expires_at=expires_at)
    )
    session.commit()
    logger.info("Issued verification code for %s, expires %s", target, expires_at.isoformat())

    try:
        notifier.send_code(target, code_type, code)
    except NotificationError as e:
        # The code is stored; the client may retry after retry_after seconds.
        logger.warning("Failed to deliver verification code to %s: %s", target, e)

    return IssuedCode(
        expires_at=expires_at,
        retry_after=settings.verification_retry_after_seconds,
    )


def consume_code(target: str, code: str, session: Session) -> VerificationCode:
    """Mark a live code as used. The caller commits.

    Unknown, expired and already-used codes all raise InvalidCodeError.
    """
    now = utcnow()
    row = session.exec(
        select(VerificationCode).where(
            VerificationCode.target == target,
            VerificationCode.code == code,
            VerificationCode.used_at == None,  # noqa: E711
            VerificationCode.expires_at > now,
        )
    ).first()
    if not row:
        raise InvalidCodeError()

    row.used_at = now
    row.verified = True
    session.add(row)
    session.flush()
    return row


def ensure_recently_consumed(
    target: str,
    code: str,
    session: Session,
    window: timedelta | None = None,
) -> VerificationCode:
    """Require that consume_code accepted this code within the window."""
    if window is None:
        window = timedelta(minutes=settings.verification_code_expire_minutes)

    row = session.exec(
        select(VerificationCode)
        .where(
            VerificationCode.target == target,
            VerificationCode.code == code,
            VerificationCode.verified == True,  # noqa: E712
            VerificationCode.used_at != None,  # noqa: E711
        )
        .order_by(col(VerificationCode.used_at).desc())
    ).first()

    if not row or utcnow() - as_utc(row.used_at) > window:
        raise InvalidVerificationError()
    return row
