from typing import Optional

from stocksync.core.enums import ErrorKind


class BaseServiceError(Exception):
    """Base exception for all service-related errors."""
    pass

class ValidationError(BaseServiceError):
    """Raised when a caller supplies an empty or invalid batch."""
    pass

class PlatformServiceError(BaseServiceError):
    """Base exception for platform service errors."""
    kind: ErrorKind = ErrorKind.UNKNOWN

class AuthenticationError(PlatformServiceError):
    """Raised when a valid credential cannot be obtained for a platform."""
    pass

class PlatformAPIError(PlatformServiceError):
    """Raised when a platform API call fails for an unclassified reason."""

    def __init__(self, message: str, platform: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.platform = platform
        self.status_code = status_code

class NotFoundError(PlatformAPIError):
    """Raised when the remote system reports the resource does not exist (404)."""
    kind = ErrorKind.NOT_FOUND

class RateLimitedError(PlatformAPIError):
    """Raised when the remote system throttles us (429)."""
    kind = ErrorKind.RATE_LIMITED

    def __init__(
        self,
        message: str,
        platform: Optional[str] = None,
        status_code: Optional[int] = 429,
        retry_after: Optional[float] = None,
    ):
        super().__init__(message, platform=platform, status_code=status_code)
        self.retry_after = retry_after

class ServerUnavailableError(PlatformAPIError):
    """Raised for 5xx responses; the remote system may be overloaded."""
    kind = ErrorKind.SERVER_UNAVAILABLE


def error_kind_for(exc: BaseException) -> ErrorKind:
    """Classify an exception for retry purposes without looking at its message."""
    return getattr(exc, "kind", ErrorKind.UNKNOWN)
