"""Error taxonomy resolved into the JSON response contract at the API boundary."""

NO_TOKEN = "NO_TOKEN"
EXPIRED_ACCESS = "EXPIRED_ACCESS"
INVALID_ACCESS = "INVALID_ACCESS"
PASSWORD_EXPIRED = "PASSWORD_EXPIRED"
VALIDATION_ERROR = "VALIDATION_ERROR"


class ApiError(Exception):
    """Base error carrying HTTP status, human-readable message and optional machine code."""

    status_code = 500

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code

    def to_payload(self) -> dict[str, str]:
        payload = {"message": self.message}
        if self.code:
            payload["code"] = self.code
        return payload


class AuthenticationError(ApiError):
    """Missing, invalid or expired credentials (401)."""

    status_code = 401


class AuthorizationError(ApiError):
    """Role, ownership or password-expiry denial (403)."""

    status_code = 403


class IdentityNotFoundError(AuthorizationError):
    """Token subject no longer exists. Reported as 403, not 404."""


class InternalError(ApiError):
    """Unexpected failure; message is always generic."""

    status_code = 500

    def __init__(self, message: str = "Authentication failed due to an internal error.") -> None:
        super().__init__(message)


class PasswordExpiredError(AuthorizationError):
    """Password older than the allowed age; only remediation routes are reachable."""

    def __init__(self, message: str = "Your password has expired. Please change it first.") -> None:
        super().__init__(message, PASSWORD_EXPIRED)
