# Core module - Error taxonomy and retry policy
# Every failure the client raises is a ClarifaiError with a category

from .errors import (
    ErrorCategory, RetryPolicy, error_for_status,
    ClarifaiError, TransportError, SerializationError,
    TokenDecodeError, FileUploadError, StatusError,
    TokenInvalidError, ThrottledError, RequestRejectedError,
    ServiceError, UnexpectedStatusError,
)

__all__ = [
    "ErrorCategory", "RetryPolicy", "error_for_status",
    "ClarifaiError", "TransportError", "SerializationError",
    "TokenDecodeError", "FileUploadError", "StatusError",
    "TokenInvalidError", "ThrottledError", "RequestRejectedError",
    "ServiceError", "UnexpectedStatusError",
]
