"""Exceptions raised by the learning core and classification of backend failures."""
import json
from enum import Enum
from typing import Optional

from google.api_core import exceptions as google_exceptions
from pydantic import ValidationError


class ErrorKind(str, Enum):
    """Classified kinds of generation failures."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    JSON_PARSE_ERROR = "JSON_PARSE_ERROR"
    RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    CIRCUIT_BREAKER_OPEN = "CIRCUIT_BREAKER_OPEN"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class LinguaQuizError(Exception):
    """Base class for errors raised by the learning core."""


class NotFoundError(LinguaQuizError):
    """Raised when a quiz, vocabulary list or question does not exist for the caller."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(f"{resource} {resource_id} not found")
        self.resource = resource
        self.resource_id = resource_id


class CircuitOpenError(LinguaQuizError):
    """Raised when the circuit breaker blocks a call."""

    def __init__(self, message: str = "Circuit is OPEN. Request blocked."):
        super().__init__(message)


class ResponseParseError(LinguaQuizError):
    """Raised when the backend response is not valid JSON."""


class ResponseValidationError(LinguaQuizError):
    """Raised when the backend response does not have the expected shape."""


class GenerationError(LinguaQuizError):
    """Raised when a generation operation fails after exhausting its retries."""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.UNKNOWN_ERROR,
                 cause: Optional[BaseException] = None):
        super().__init__(message)
        self.kind = kind
        self.cause = cause


_MESSAGE_PATTERNS = (
    (ErrorKind.RATE_LIMIT_ERROR, ("rate limit", "429", "quota", "too many requests", "resource_exhausted")),
    (ErrorKind.TIMEOUT_ERROR, ("timeout", "timed out", "deadline")),
    (ErrorKind.AUTHENTICATION_ERROR, ("401", "403", "unauthorized", "forbidden", "api key", "authentication", "permission")),
    (ErrorKind.NETWORK_ERROR, ("network", "connection", "econnrefused", "econnreset", "enotfound", "unreachable")),
    (ErrorKind.JSON_PARSE_ERROR, ("json",)),
    (ErrorKind.VALIDATION_ERROR, ("validation",)),
)


def classify_error(error: BaseException) -> ErrorKind:
    """Classify an exception into an ErrorKind.

    Known exception types are matched first; anything else falls back to
    substring matching on the error text.
    """
    if isinstance(error, CircuitOpenError):
        return ErrorKind.CIRCUIT_BREAKER_OPEN
    if isinstance(error, (ResponseValidationError, ValidationError)):
        return ErrorKind.VALIDATION_ERROR
    if isinstance(error, (ResponseParseError, json.JSONDecodeError)):
        return ErrorKind.JSON_PARSE_ERROR
    if isinstance(error, (google_exceptions.ResourceExhausted, google_exceptions.TooManyRequests)):
        return ErrorKind.RATE_LIMIT_ERROR
    if isinstance(error, (google_exceptions.DeadlineExceeded, google_exceptions.GatewayTimeout, TimeoutError)):
        return ErrorKind.TIMEOUT_ERROR
    if isinstance(error, (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied)):
        return ErrorKind.AUTHENTICATION_ERROR
    if isinstance(error, (google_exceptions.ServiceUnavailable, ConnectionError)):
        return ErrorKind.NETWORK_ERROR

    message = str(error).lower()
    for kind, needles in _MESSAGE_PATTERNS:
        if any(needle in message for needle in needles):
            return kind
    return ErrorKind.UNKNOWN_ERROR
