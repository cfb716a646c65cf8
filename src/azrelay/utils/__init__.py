"""Utility functions for error handling."""

from azrelay.utils.errors import (
    ErrorCode,
    classify_exception,
    decode_error_body,
    log_error,
    truncate_error,
)

__all__ = [
    "ErrorCode",
    "classify_exception",
    "decode_error_body",
    "log_error",
    "truncate_error",
]
