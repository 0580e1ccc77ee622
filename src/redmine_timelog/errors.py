from __future__ import annotations

import asyncio
import json
from enum import Enum
from typing import Dict, Optional, Type

import httpx


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration_error"
    NOT_FOUND = "not_found_error"
    VALIDATION = "validation_error"
    RATE_LIMIT = "rate_limit_error"
    SERVER = "server_error"
    CONNECTION = "connection_error"
    UNKNOWN = "unknown_error"


class RedmineClientError(Exception):
    """Base error for client failures."""


class RedminePreconditionError(RedmineClientError, ValueError):
    """Raised locally when an operation is called with unusable input."""


class RedmineApiError(RedmineClientError):
    """
    A classified failure of one exchange with the Redmine server.
    - status_code is 0 when no HTTP response was received
    - body is the raw response body ("" when there was none)
    - detail carries the underlying exception text, if any
    """

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(
        self,
        *,
        status_code: int,
        body: str,
        message: str,
        detail: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.message = message
        self.detail = detail


class RedmineConfigurationError(RedmineApiError):
    kind = ErrorKind.CONFIGURATION


class RedmineNotFoundError(RedmineApiError):
    kind = ErrorKind.NOT_FOUND


class RedmineValidationError(RedmineApiError):
    kind = ErrorKind.VALIDATION


class RedmineRateLimitError(RedmineApiError):
    kind = ErrorKind.RATE_LIMIT


class RedmineServerError(RedmineApiError):
    kind = ErrorKind.SERVER


class RedmineConnectionError(RedmineApiError):
    kind = ErrorKind.CONNECTION


class RedmineUnknownError(RedmineApiError):
    kind = ErrorKind.UNKNOWN


class RedmineParseError(RedmineUnknownError):
    """The server answered 2xx but the body was not the expected JSON document."""


_ERROR_TYPES: Dict[ErrorKind, Type[RedmineApiError]] = {
    ErrorKind.CONFIGURATION: RedmineConfigurationError,
    ErrorKind.NOT_FOUND: RedmineNotFoundError,
    ErrorKind.VALIDATION: RedmineValidationError,
    ErrorKind.RATE_LIMIT: RedmineRateLimitError,
    ErrorKind.SERVER: RedmineServerError,
    ErrorKind.CONNECTION: RedmineConnectionError,
    ErrorKind.UNKNOWN: RedmineUnknownError,
}

# No HTTP response at all: refused, DNS failure, timeouts.
CONNECTION_EXCEPTIONS = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
    asyncio.TimeoutError,
    ConnectionError,
)


def error_kind_for_status(status_code: int) -> ErrorKind:
    if status_code in (401, 403):
        return ErrorKind.CONFIGURATION
    if status_code == 404:
        return ErrorKind.NOT_FOUND
    if status_code == 422:
        return ErrorKind.VALIDATION
    if status_code == 429:
        return ErrorKind.RATE_LIMIT
    if 500 <= status_code <= 599:
        return ErrorKind.SERVER
    return ErrorKind.UNKNOWN


def validation_detail(body: str) -> str:
    """
    Extract Redmine's validation messages from a 422 body.
    Redmine answers {"errors": ["Hours cannot be blank", ...]}; anything else
    falls back to the raw body.
    """
    try:
        parsed = json.loads(body)
    except (ValueError, RecursionError):
        return body
    if isinstance(parsed, dict):
        errors = parsed.get("errors")
        if isinstance(errors, list) and errors:
            return "; ".join(str(e) for e in errors)
        if isinstance(errors, str) and errors:
            return errors
    return body


def error_message(kind: ErrorKind, status_code: int, body: str) -> str:
    if kind is ErrorKind.CONFIGURATION:
        return "Configuration error: Please check your Redmine URL and API key."
    if kind is ErrorKind.CONNECTION:
        return "Connection error: Unable to connect to Redmine server."
    if kind is ErrorKind.VALIDATION:
        return (
            "Validation error: The time entry could not be saved due to "
            f"validation errors: {validation_detail(body)}"
        )
    if kind is ErrorKind.SERVER:
        return (
            "Server error: The Redmine server encountered an error. "
            "Please try again later."
        )
    if kind is ErrorKind.NOT_FOUND:
        return "Not found error: The requested resource was not found."
    if kind is ErrorKind.RATE_LIMIT:
        return "Rate limit error: Too many requests. Please try again later."
    return f"Unknown error: An unexpected error occurred (Status code: {status_code})."


def classify(
    status_code: int,
    body: Optional[str] = "",
    exc: Optional[BaseException] = None,
) -> RedmineApiError:
    """
    Turn a failed exchange into one typed error. Never raises.

    - status_code 0 with a network/timeout exception -> connection error
    - HTTP status drives the kind otherwise
    - a 2xx status with an exception means the body could not be parsed
    """
    body = body if isinstance(body, str) else ""
    try:
        status_code = int(status_code or 0)
    except (TypeError, ValueError):
        status_code = 0
    detail = f"{type(exc).__name__}: {exc}" if exc is not None else None

    if status_code == 0:
        if exc is not None and isinstance(exc, CONNECTION_EXCEPTIONS):
            kind = ErrorKind.CONNECTION
        else:
            kind = ErrorKind.UNKNOWN
    elif 200 <= status_code < 300:
        return RedmineParseError(
            status_code=status_code,
            body=body,
            message=(
                "Unknown error: Unexpected response from Redmine server "
                f"(Status code: {status_code})."
            ),
            detail=detail,
        )
    else:
        kind = error_kind_for_status(status_code)

    return _ERROR_TYPES[kind](
        status_code=status_code,
        body=body,
        message=error_message(kind, status_code, body),
        detail=detail,
    )


__all__ = [
    "ErrorKind",
    "RedmineClientError",
    "RedminePreconditionError",
    "RedmineApiError",
    "RedmineConfigurationError",
    "RedmineNotFoundError",
    "RedmineValidationError",
    "RedmineRateLimitError",
    "RedmineServerError",
    "RedmineConnectionError",
    "RedmineUnknownError",
    "RedmineParseError",
    "classify",
    "error_kind_for_status",
    "error_message",
    "validation_detail",
]
