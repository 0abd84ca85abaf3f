"""
Error Handling Module
---------------------
Typed errors with classification and retry logic.
Only an expired token is ever retried, and only once.
"""

from enum import Enum, auto
from typing import Any, Dict, Optional, Type


class ErrorCategory(Enum):
    """Categories of errors for handling decisions."""
    TRANSPORT = auto()          # Network/connection failure
    SERIALIZATION = auto()      # Request body could not be encoded
    TOKEN_DECODE = auto()       # Token endpoint returned garbage
    FILE_ACCESS = auto()        # Upload file could not be opened
    AUTH_EXPIRED = auto()       # 401 on a first attempt
    TOKEN_INVALID = auto()      # 401 after re-authenticating
    THROTTLED = auto()          # 429
    REQUEST_REJECTED = auto()   # 400
    SERVICE_ERROR = auto()      # 500
    UNEXPECTED_STATUS = auto()  # Anything else


class ClarifaiError(Exception):
    """
    Base error for everything the client raises.

    Carries a category so callers can branch on the kind of failure
    without matching on exception classes.
    """
    category: ErrorCategory = ErrorCategory.UNEXPECTED_STATUS
    recoverable: bool = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.category.name}: {self.message})"


class TransportError(ClarifaiError):
    """The transport failed before a response was received."""
    category = ErrorCategory.TRANSPORT
    recoverable = True


class SerializationError(ClarifaiError):
    """The JSON body could not be encoded."""
    category = ErrorCategory.SERIALIZATION


class TokenDecodeError(ClarifaiError):
    """The token endpoint response could not be decoded."""
    category = ErrorCategory.TOKEN_DECODE


class FileUploadError(ClarifaiError):
    """A file named in an upload could not be opened."""
    category = ErrorCategory.FILE_ACCESS


class StatusError(ClarifaiError):
    """The service answered with a non-success status code."""

    # Keep error messages readable when the service returns a page of HTML
    MAX_BODY_CHARS = 500

    def __init__(self, status_code: int, endpoint: str, body: str = ""):
        self.status_code = status_code
        self.endpoint = endpoint
        self.body = body[:self.MAX_BODY_CHARS]
        super().__init__(
            f"{self.category.name}: HTTP {status_code} from '{endpoint}'",
            details={"status_code": status_code, "endpoint": endpoint},
        )


class TokenInvalidError(StatusError):
    """Still unauthorized after acquiring a fresh token."""
    category = ErrorCategory.TOKEN_INVALID


class ThrottledError(StatusError):
    """The service is rate limiting this client."""
    category = ErrorCategory.THROTTLED
    recoverable = True


class RequestRejectedError(StatusError):
    """The service rejected the request payload or parameters."""
    category = ErrorCategory.REQUEST_REJECTED


class ServiceError(StatusError):
    """The service failed internally."""
    category = ErrorCategory.SERVICE_ERROR
    recoverable = True


class UnexpectedStatusError(StatusError):
    """A status code the client has no rule for."""
    category = ErrorCategory.UNEXPECTED_STATUS


_STATUS_ERRORS: Dict[int, Type[StatusError]] = {
    400: RequestRejectedError,
    429: ThrottledError,
    500: ServiceError,
}


def error_for_status(status_code: int, endpoint: str, body: str = "") -> StatusError:
    """Build the error for a non-success status (401 is handled by the caller)."""
    error_cls = _STATUS_ERRORS.get(status_code, UnexpectedStatusError)
    return error_cls(status_code, endpoint, body)


class RetryPolicy:
    """
    Retry policy for different error categories.

    The client only heals an expired token. Everything else is surfaced
    so the caller can apply its own backoff.
    """

    # Maximum retries per error category
    MAX_RETRIES: Dict[ErrorCategory, int] = {
        ErrorCategory.AUTH_EXPIRED: 1,       # Re-authenticate once
        ErrorCategory.TOKEN_INVALID: 0,
        ErrorCategory.THROTTLED: 0,          # Caller backs off
        ErrorCategory.TRANSPORT: 0,
        ErrorCategory.SERVICE_ERROR: 0,
        ErrorCategory.REQUEST_REJECTED: 0,   # Fix the request
    }

    @classmethod
    def should_retry(cls, category: ErrorCategory, attempts_made: int) -> bool:
        """Check if another attempt is allowed after `attempts_made` retries."""
        return attempts_made < cls.MAX_RETRIES.get(category, 0)
