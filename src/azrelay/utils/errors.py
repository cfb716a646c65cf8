"""Error handling utilities for backend failures."""

import logging
from enum import Enum
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Classification of failures seen while talking to the backend."""

    # Backend answered with a non-2xx status
    AUTH_INVALID = "AUTH_INVALID"
    RATE_LIMITED = "RATE_LIMITED"
    NOT_FOUND = "NOT_FOUND"
    BACKEND_ERROR = "BACKEND_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"

    # No response received
    TIMEOUT = "TIMEOUT"
    UNREACHABLE = "UNREACHABLE"

    INTERNAL_ERROR = "INTERNAL_ERROR"


# Messages returned to clients
API_KEY_VALIDATION_FAILED = (
    "API key validation failed. Please check the AZURE_API_KEY setting."
)
INTERNAL_SERVER_ERROR = "An internal server error occurred."
FORWARD_FAILED = "Failed to forward request to Azure endpoint."

# Maximum length for error details written to logs
MAX_ERROR_LENGTH = 500


def truncate_error(error: str, max_length: int = MAX_ERROR_LENGTH) -> str:
    """Truncate error message if too long.

    Args:
        error: The error message.
        max_length: Maximum allowed length.

    Returns:
        Truncated error message.
    """
    if len(error) <= max_length:
        return error

    return error[: max_length - 3] + "..."


def decode_error_body(response: httpx.Response) -> Any:
    """Decode a backend error body for relaying.

    Returns the parsed JSON when the body is JSON, otherwise the text.
    """
    try:
        return response.json()
    except ValueError:
        return response.text


def describe_exception(exc: Exception) -> str:
    """Human readable message for a failure, never empty."""
    message = str(exc)
    return message if message else type(exc).__name__


def classify_exception(exc: Exception) -> ErrorCode:
    """Classify an exception to an error code.

    Args:
        exc: The exception to classify.

    Returns:
        Appropriate error code.
    """
    if isinstance(exc, httpx.HTTPStatusError):
        status_code = exc.response.status_code
        if status_code in (401, 403):
            return ErrorCode.AUTH_INVALID
        elif status_code == 429:
            return ErrorCode.RATE_LIMITED
        elif status_code == 404:
            return ErrorCode.NOT_FOUND
        elif status_code >= 500:
            return ErrorCode.SERVICE_UNAVAILABLE
        else:
            return ErrorCode.BACKEND_ERROR

    if isinstance(exc, (httpx.TimeoutException, TimeoutError)):
        return ErrorCode.TIMEOUT

    if isinstance(exc, (httpx.RequestError, ConnectionError)):
        return ErrorCode.UNREACHABLE

    return ErrorCode.INTERNAL_ERROR


def log_error(
    message: str,
    exc: Exception,
    request_id: str | None = None,
    **context: Any,
) -> ErrorCode:
    """Log a backend failure with context.

    Backend rejections include the status and a truncated body; transport
    failures include the failure message.

    Args:
        message: Log message prefix.
        exc: The exception that occurred.
        request_id: Optional request ID.
        **context: Additional context to include in log.

    Returns:
        The error code the exception was classified as.
    """
    code = classify_exception(exc)

    log_extra = {
        "error_code": code.value,
        "error_type": type(exc).__name__,
        "request_id": request_id,
        **context,
    }

    if isinstance(exc, httpx.HTTPStatusError):
        body = truncate_error(exc.response.text)
        logger.error(f"{message}: {exc.response.status_code} {body}", extra=log_extra)
    elif code == ErrorCode.INTERNAL_ERROR:
        logger.exception(message, extra=log_extra)
    else:
        logger.error(f"{message}: {describe_exception(exc)}", extra=log_extra)

    return code
