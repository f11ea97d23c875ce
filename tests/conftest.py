"""Shared fixtures.

The OYAKATSU_ environment points at a throwaway directory before the
application is imported, so settings and the SQLite file live there.
"""

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

_TMP = tempfile.mkdtemp()
os.environ["OYAKATSU_DATA_DIR"] = _TMP
os.environ["OYAKATSU_DB_PATH"] = os.path.join(_TMP, "test.db")
os.environ["OYAKATSU_JWT_SECRET"] = "test-secret-for-oyakatsu-only-0123456789abcdef"
os.environ["OYAKATSU_PASSWORD_HASH_ROUNDS"] = "4"  # keep bcrypt fast in tests

import pytest
from fastapi.testclient import TestClient

from oyakatsu.config import settings
from oyakatsu.database import Database
from oyakatsu.main import app
from oyakatsu.models.enums import UserRole
from oyakatsu.models.user import User
from oyakatsu.services.notification_service import Notifier

API = "/api/v1"


class RecordingNotifier(Notifier):
    """Captures codes instead of delivering them."""

    def __init__(self):
        self.sent = []

    def send_code(self, target, code_type, code):
        self.sent.append((target, code_type, code))

    def last_code(self, target: str) -> str:
        for sent_target, _, code in reversed(self.sent):
            if sent_target == target:
                return code
        raise AssertionError(f"no code sent to {target}")


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


# --- Service-level fixtures ---

@pytest.fixture
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'service.db'}")
    db.open()
    yield db
    db.close()


@pytest.fixture
def session(database):
    with database.session() as s:
        yield s


@pytest.fixture
def make_user(session):
    counter = iter(range(1, 10_000))

    def _make(role: UserRole | None = None, display_name: str = "Someone") -> User:
        n = next(counter)
        user = User(phone_number=f"+8190{n:08d}", display_name=display_name, role=role)
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make


# --- API fixtures ---

def _remove_db_files() -> None:
    for suffix in ("", "-wal", "-shm"):
        path = Path(f"{settings.db_path}{suffix}")
        if path.exists():
            path.unlink()


@pytest.fixture
def client(notifier):
    _remove_db_files()
    with TestClient(app) as c:
        c.app.state.notifier = notifier
        yield c
    _remove_db_files()


@dataclass
class Account:
    data: dict

    @property
    def user_id(self) -> str:
        return self.data["user"]["id"]

    @property
    def headers(self) -> dict:
        return {"Authorization": f"Bearer {self.data['accessToken']}"}


@pytest.fixture
def signup(client, notifier):
    """Walk send-code -> verify-code -> register (-> set role) for a phone number."""

    def _signup(
        phone: str,
        display_name: str = "Test User",
        role: str | None = None,
        email: str | None = None,
        password: str | None = None,
    ) -> Account:
        r = client.post(f"{API}/auth/send-code", json={"phoneNumber": phone})
        assert r.status_code == 200, r.text
        code = notifier.last_code(phone)

        r = client.post(f"{API}/auth/verify-code", json={"phoneNumber": phone, "code": code})
        assert r.status_code == 200, r.text
        assert r.json()["isNewUser"] is True

        body = {"phoneNumber": phone, "verificationCode": code, "displayName": display_name}
        if email:
            body["email"] = email
        if password:
            body["password"] = password
        r = client.post(f"{API}/auth/register", json=body)
        assert r.status_code == 201, r.text
        account = Account(data=r.json())

        if role:
            r = client.post(f"{API}/users/me/role", json={"role": role}, headers=account.headers)
            assert r.status_code == 200, r.text
            account.data["user"] = r.json()
        return account

    return _signup
