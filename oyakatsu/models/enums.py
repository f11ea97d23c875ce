"""Closed enumerations shared by models and schemas."""

from enum import Enum


class UserRole(str, Enum):
    PARENT = "parent"
    CHILD = "child"


class VerificationType(str, Enum):
    PHONE = "phone"
    EMAIL = "email"


class MemberStatus(str, Enum):
    ACTIVE = "active"
    LEFT = "left"


class DevicePlatform(str, Enum):
    IOS = "ios"
    ANDROID = "android"
