"""Structured logging configuration and access logging middleware."""

import json
import logging
import sys
import time
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

# Record attributes copied into JSON entries, set by the access log and log_error()
EXTRA_FIELDS = ("method", "path", "status_code", "duration_ms", "error_code", "error_type")

# Third-party loggers that would otherwise log every backend call
QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore")


def _current_request_id(record: logging.LogRecord) -> str | None:
    return getattr(record, "request_id", None) or request_id_var.get()


class JsonFormatter(logging.Formatter):
    """One JSON object per line, with request ID and access fields."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = _current_request_id(record)
        if request_id:
            entry["request_id"] = request_id
        entry.update(
            (key, getattr(record, key))
            for key in EXTRA_FIELDS
            if getattr(record, key, None) is not None
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable lines for local runs; the short request ID leads the message."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def formatMessage(self, record: logging.LogRecord) -> str:
        # record.message is recomputed by every format() call
        request_id = _current_request_id(record)
        if request_id:
            record.message = f"[{request_id[:8]}] {record.message}"
        return super().formatMessage(record)


def configure_logging(level: str = "INFO", format: str = "json") -> None:
    """Route all logging to stdout in the configured format.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        format: Output format (json or text).
    """
    log_level = getattr(logging, level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(JsonFormatter() if format == "json" else TextFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Access log: one entry when a request arrives and one when it is answered.

    For streamed responses the completion entry is written once the
    response starts, not when the stream ends.
    """

    def __init__(self, app, logger: logging.Logger | None = None):
        super().__init__(app)
        self.logger = logger or logging.getLogger("azrelay.access")

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        # Set by RequestIdMiddleware
        request_id = getattr(request.state, "request_id", None)
        fields = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
        }
        token = request_id_var.set(request_id)
        start_time = time.perf_counter()

        def elapsed_ms() -> int:
            return int((time.perf_counter() - start_time) * 1000)

        try:
            self.logger.debug("Request started", extra=fields)
            response = await call_next(request)
        except Exception as e:
            self.logger.exception(
                "Request failed",
                extra={**fields, "duration_ms": elapsed_ms(), "error_type": type(e).__name__},
            )
            raise
        finally:
            request_id_var.reset(token)

        self.logger.info(
            "Request completed",
            extra={**fields, "status_code": response.status_code, "duration_ms": elapsed_ms()},
        )
        return response
