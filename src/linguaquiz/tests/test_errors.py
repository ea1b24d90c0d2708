"""Tests for error classification."""
import json

import pytest
from google.api_core import exceptions as google_exceptions

from linguaquiz.errors import (
    CircuitOpenError,
    ErrorKind,
    NotFoundError,
    ResponseParseError,
    ResponseValidationError,
    classify_error,
)


@pytest.mark.parametrize(
    "error,kind",
    [
        (CircuitOpenError(), ErrorKind.CIRCUIT_BREAKER_OPEN),
        (ResponseValidationError("missing field"), ErrorKind.VALIDATION_ERROR),
        (ResponseParseError("not json"), ErrorKind.JSON_PARSE_ERROR),
        (json.JSONDecodeError("Expecting value", "x", 0), ErrorKind.JSON_PARSE_ERROR),
        (google_exceptions.DeadlineExceeded("Deadline Exceeded"), ErrorKind.TIMEOUT_ERROR),
        (TimeoutError(), ErrorKind.TIMEOUT_ERROR),
        (google_exceptions.ServiceUnavailable("Backend unavailable"), ErrorKind.NETWORK_ERROR),
        (ConnectionRefusedError(), ErrorKind.NETWORK_ERROR),
        (google_exceptions.ResourceExhausted("Resource has been exhausted"), ErrorKind.RATE_LIMIT_ERROR),
        (google_exceptions.PermissionDenied("Caller does not have access"), ErrorKind.AUTHENTICATION_ERROR),
        (google_exceptions.Unauthenticated("Request had invalid credentials"), ErrorKind.AUTHENTICATION_ERROR),
        (RuntimeError("Quota exceeded for this project"), ErrorKind.RATE_LIMIT_ERROR),
        (RuntimeError("Invalid API key provided"), ErrorKind.AUTHENTICATION_ERROR),
        (RuntimeError("ECONNRESET while reading"), ErrorKind.NETWORK_ERROR),
        (RuntimeError("something odd"), ErrorKind.UNKNOWN_ERROR),
    ],
)
def test_classify_error(error: Exception, kind: ErrorKind) -> None:
    """Errors map onto the generation failure taxonomy."""
    assert classify_error(error) is kind


def test_not_found_message() -> None:
    """Not-found errors name the missing resource."""
    error = NotFoundError("Quiz", "abc")
    assert str(error) == "Quiz abc not found"
    assert error.resource == "Quiz"
