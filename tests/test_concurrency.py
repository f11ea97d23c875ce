"""Membership, token and code invariants under concurrent requests.

Each worker thread uses its own session, as concurrent requests would.
"""

import threading

from sqlmodel import func, select

from oyakatsu.config import settings
from oyakatsu.errors import AppError
from oyakatsu.models.auth import VerificationCode
from oyakatsu.models.enums import MemberStatus, UserRole, VerificationType
from oyakatsu.models.family import FamilyMember
from oyakatsu.models.user import User
from oyakatsu.services import family_service, token_service, verification_service


def _run_joins(database, attempts):
    """Run (user_id, invite_code) joins in parallel; return outcome per attempt."""
    barrier = threading.Barrier(len(attempts))
    outcomes = [None] * len(attempts)

    def worker(index, user_id, invite_code):
        barrier.wait()
        with database.session() as s:
            try:
                user = s.get(User, user_id)
                family_service.join(user, invite_code, s)
                outcomes[index] = "ok"
            except AppError as e:
                outcomes[index] = e.code

    threads = [
        threading.Thread(target=worker, args=(i, user_id, code))
        for i, (user_id, code) in enumerate(attempts)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return outcomes


def test_concurrent_joins_never_overfill(database, session, make_user):
    owner = make_user(UserRole.PARENT)
    fam = family_service.create_family(owner, "Busy", session).family
    family_id, code = fam.id, fam.invite_code
    children = [make_user(UserRole.CHILD).id for _ in range(settings.family_max_members + 3)]
    session.close()  # release the write lock before the workers start

    outcomes = _run_joins(database, [(child_id, code) for child_id in children])

    assert outcomes.count("ok") == settings.family_max_members - 1
    assert outcomes.count("FAMILY_FULL") == 4
    with database.session() as s:
        assert family_service.count_active_members(family_id, s) == settings.family_max_members


def test_concurrent_joins_by_one_user(database, session, make_user):
    codes = [
        family_service.create_family(make_user(UserRole.PARENT), f"Family {i}", session).family.invite_code
        for i in range(4)
    ]
    child_id = make_user(UserRole.CHILD).id
    session.close()

    outcomes = _run_joins(database, [(child_id, code) for code in codes])

    assert outcomes.count("ok") == 1
    assert outcomes.count("ALREADY_MEMBER") == 3
    with database.session() as s:
        active = s.exec(
            select(func.count()).select_from(FamilyMember).where(
                FamilyMember.user_id == child_id,
                FamilyMember.status == MemberStatus.ACTIVE,
            )
        ).one()
    assert active == 1


def _run_parallel(database, count, action):
    """Call action(session) from count threads at once; return outcome per thread."""
    barrier = threading.Barrier(count)
    outcomes = [None] * count

    def worker(index):
        barrier.wait()
        with database.session() as s:
            try:
                action(s)
                outcomes[index] = "ok"
            except AppError as e:
                outcomes[index] = e.code

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return outcomes


def test_concurrent_rotation_is_single_use(database, session, make_user):
    user = make_user()
    pair = token_service.issue_pair(user.id, session)
    session.commit()
    session.close()

    outcomes = _run_parallel(database, 6, lambda s: token_service.rotate(pair.refresh_token, s))

    assert outcomes.count("ok") == 1
    assert outcomes.count("INVALID_TOKEN") == 5


def test_concurrent_code_issue_leaves_one_live_code(database, session, notifier):
    target = "+819000000042"
    session.close()

    outcomes = _run_parallel(
        database,
        8,
        lambda s: verification_service.issue_code(target, VerificationType.PHONE, s, notifier),
    )

    assert outcomes == ["ok"] * 8
    assert len(notifier.sent) == 8
    with database.session() as s:
        live = s.exec(
            select(func.count()).select_from(VerificationCode).where(
                VerificationCode.target == target,
                VerificationCode.used_at == None,  # noqa: E711
            )
        ).one()
    assert live == 1
