"""Domain errors raised by the services.

Each error carries a stable machine-readable ``code`` and a default human
``message``. HTTP status codes are assigned in ``oyakatsu.api.errors``.
"""


class AppError(Exception):
    code = "INTERNAL_ERROR"
    message = "An unexpected error occurred"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


# --- Authentication ---

class UnauthorizedError(AppError):
    code = "UNAUTHORIZED"
    message = "Authentication required"


class TokenExpiredError(AppError):
    code = "TOKEN_EXPIRED"
    message = "Token has expired"


class InvalidTokenError(AppError):
    code = "INVALID_TOKEN"
    message = "Invalid token"


class MissingTokenError(AppError):
    code = "MISSING_TOKEN"
    message = "Refresh token is required"


class InvalidCredentialsError(AppError):
    code = "INVALID_CREDENTIALS"
    message = "Email or password is incorrect"


# --- Verification ---

class InvalidCodeError(AppError):
    code = "INVALID_CODE"
    message = "Verification code is invalid"


class InvalidVerificationError(AppError):
    code = "INVALID_VERIFICATION"
    message = "Verification is invalid. Please verify again"


class UserExistsError(AppError):
    code = "USER_EXISTS"
    message = "This account is already registered"


# --- Authorization ---

class RoleRequiredError(AppError):
    code = "ROLE_REQUIRED"
    message = "A role must be set first"


class ForbiddenError(AppError):
    code = "FORBIDDEN"
    message = "This operation is not allowed"


class RoleAlreadySetError(AppError):
    code = "ROLE_ALREADY_SET"
    message = "Role has already been set"


# --- Families ---

class InvalidInviteCodeError(InvalidCodeError):
    message = "Invite code is invalid"


class AlreadyMemberError(AppError):
    code = "ALREADY_MEMBER"
    message = "Already a member of a family"


class FamilyFullError(AppError):
    code = "FAMILY_FULL"
    message = "This family is full"


class NotMemberError(AppError):
    code = "NOT_MEMBER"
    message = "Not a member of this family"


class CannotLeaveError(AppError):
    code = "CANNOT_LEAVE"
    message = "The family creator cannot leave"


# --- Generic ---

class NotFoundError(AppError):
    code = "NOT_FOUND"
    message = "Not found"


class NotImplementedFeatureError(AppError):
    code = "NOT_IMPLEMENTED"
    message = "This feature is not implemented yet"
