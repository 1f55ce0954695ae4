"""Custom exceptions for the linksite application."""


class LinksiteException(Exception):
    """Base class for linksite exceptions with HTTP status code.

    All custom exceptions should inherit from this class and define
    their specific status_code for consistent HTTP response handling.
    """
    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str = "Internal server error"):
        self.message = message
        super().__init__(message)


class InvalidBucketError(LinksiteException):
    """Raised when the rate limiter is asked about a bucket it does not know.

    This is a programming error in the caller, never a client error.
    """
    status_code = 500
    error_code = "invalid_bucket"

    def __init__(self, bucket: str):
        self.bucket = bucket
        super().__init__(f"Unknown rate limit bucket: {bucket!r}")


class RateLimitExceededError(LinksiteException):
    """Raised when a client exhausted its allowance for a bucket.

    Maps to HTTP 429 Too Many Requests.
    """
    status_code = 429
    error_code = "rate_limit_exceeded"

    def __init__(
        self,
        bucket: str,
        retry_after: int | None = None,
        message: str = "Too many requests. Please try again later.",
    ):
        self.bucket = bucket
        self.retry_after = retry_after
        super().__init__(message)


class AuthenticationError(LinksiteException):
    """Raised when a bearer token or credentials are missing or wrong.

    Maps to HTTP 401 Unauthorized.
    """
    status_code = 401
    error_code = "authentication_failed"

    def __init__(self, detail: str = "Invalid or missing credentials"):
        self.detail = detail
        super().__init__(detail)


class PermissionDeniedError(LinksiteException):
    """Raised when an authenticated user lacks the admin role.

    Maps to HTTP 403 Forbidden.
    """
    status_code = 403
    error_code = "permission_denied"

    def __init__(self, detail: str = "Admin access required"):
        self.detail = detail
        super().__init__(detail)


class RegistrationClosedError(LinksiteException):
    """Raised when site policy refuses a new registration."""
    status_code = 403
    error_code = "registration_closed"
