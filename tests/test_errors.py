"""
Error Taxonomy Tests
--------------------
Tests for error classification and the retry policy.
"""

import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from core.errors import (
    ErrorCategory, RetryPolicy, error_for_status,
    ClarifaiError, StatusError, TransportError, SerializationError,
    TokenInvalidError, ThrottledError, RequestRejectedError,
    ServiceError, UnexpectedStatusError,
)


class TestStatusMapping:
    """Tests for status code to error mapping."""

    @pytest.mark.parametrize("status,error_cls,category", [
        (400, RequestRejectedError, ErrorCategory.REQUEST_REJECTED),
        (429, ThrottledError, ErrorCategory.THROTTLED),
        (500, ServiceError, ErrorCategory.SERVICE_ERROR),
        (418, UnexpectedStatusError, ErrorCategory.UNEXPECTED_STATUS),
        (502, UnexpectedStatusError, ErrorCategory.UNEXPECTED_STATUS),
    ])
    def test_error_for_status(self, status, error_cls, category):
        error = error_for_status(status, "tag", "body")

        assert type(error) is error_cls
        assert error.category == category
        assert error.status_code == status
        assert error.endpoint == "tag"

    def test_all_status_errors_share_base(self):
        for status in (400, 429, 500, 599):
            assert isinstance(error_for_status(status, "tag"), StatusError)
            assert isinstance(error_for_status(status, "tag"), ClarifaiError)

    def test_body_is_truncated(self):
        error = ServiceError(500, "tag", "x" * 10_000)

        assert len(error.body) == StatusError.MAX_BODY_CHARS

    def test_message_names_status_and_endpoint(self):
        error = TokenInvalidError(401, "color")

        assert "401" in str(error)
        assert "color" in str(error)
        assert "TOKEN_INVALID" in repr(error)


class TestErrorDetails:
    """Tests for non-status errors."""

    def test_details_default_empty(self):
        error = SerializationError("bad body")

        assert error.details == {}
        assert error.message == "bad body"
        assert not error.recoverable

    def test_transport_is_recoverable(self):
        error = TransportError("refused", details={"endpoint": "tag"})

        assert error.recoverable
        assert error.details["endpoint"] == "tag"


class TestRetryPolicy:
    """Tests for the retry bound."""

    def test_auth_expiry_retried_once(self):
        assert RetryPolicy.should_retry(ErrorCategory.AUTH_EXPIRED, 0)
        assert not RetryPolicy.should_retry(ErrorCategory.AUTH_EXPIRED, 1)
        assert not RetryPolicy.should_retry(ErrorCategory.AUTH_EXPIRED, 2)

    @pytest.mark.parametrize("category", [
        c for c in ErrorCategory if c is not ErrorCategory.AUTH_EXPIRED
    ])
    def test_nothing_else_retried(self, category):
        assert not RetryPolicy.should_retry(category, 0)
