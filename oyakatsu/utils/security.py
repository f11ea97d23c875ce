"""Security utilities: JWT tokens, password hashing, code generation."""

import hashlib
import secrets
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from oyakatsu.config import settings


# --- Password Hashing ---

def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.password_hash_rounds)
    return bcrypt.hashpw(password.encode(), salt).decode()


def verify_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(password.encode(), hashed.encode())


# --- JWT Tokens ---

def _encode(user_id: str, token_type: str, expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "type": token_type,
        "iat": now,
        "exp": now + expires_delta,
        "jti": secrets.token_hex(8),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_access_token(user_id: str, expires_delta: timedelta | None = None) -> str:
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    return _encode(user_id, "access", expires_delta)


def create_refresh_token(user_id: str, expires_delta: timedelta | None = None) -> str:
    if expires_delta is None:
        expires_delta = timedelta(days=settings.refresh_token_expire_days)
    return _encode(user_id, "refresh", expires_delta)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT token. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


# --- Codes ---

def generate_verification_code() -> str:
    """Generate a random 6-digit code in [100000, 999999]."""
    num = secrets.randbelow(900000) + 100000
    return str(num)


def generate_invite_code() -> str:
    """Generate a 6-character uppercase hex invite code (3 random bytes)."""
    return secrets.token_hex(3).upper()


# --- Token Hash ---

def hash_token(token: str) -> str:
    """Fingerprint a refresh token for storage."""
    return hashlib.sha256(token.encode()).hexdigest()
