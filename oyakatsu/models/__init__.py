"""Oyakatsu Database Models."""

from oyakatsu.models.enums import DevicePlatform, MemberStatus, UserRole, VerificationType
from oyakatsu.models.user import DeviceToken, User
from oyakatsu.models.auth import RefreshToken, VerificationCode
from oyakatsu.models.family import Family, FamilyMember

__all__ = [
    "DevicePlatform",
    "MemberStatus",
    "UserRole",
    "VerificationType",
    "User",
    "DeviceToken",
    "VerificationCode",
    "RefreshToken",
    "Family",
    "FamilyMember",
]
