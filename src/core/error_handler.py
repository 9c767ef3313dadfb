"""Error envelopes and structured logging for the generation API.

Every failure outside the SSE stream leaves as an `ErrorResponse` carrying the
request's correlation id. Production responses expose only the error type;
other environments add details, validation errors and a traceback. Failures
inside a running generation never reach this module: they are reported as the
stream's terminal `error` event instead.
"""

import logging
import sys
import traceback
import uuid
from contextvars import ContextVar
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from pythonjsonlogger.json import JsonFormatter
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from core.config import get_settings
from core.exceptions import (
    DomainError,
    GenerationUnavailableError,
    ProjectNotFoundError,
)
from core.security_config import (
    get_allowed_error_fields,
    is_payload_key,
    is_sensitive_key,
)
from schemas.api import ErrorResponse


_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

logger = logging.getLogger(__name__)

ERROR_TYPE_MESSAGES: dict[type[Exception], str] = {
    ProjectNotFoundError: "Project not found",
    GenerationUnavailableError: "Code generation is not available",
    ValidationError: "Invalid request data provided",
}

DOMAIN_STATUS_CODES: dict[type[DomainError], int] = {
    ProjectNotFoundError: 404,
    GenerationUnavailableError: 503,
}

# Raised by the database layer when the store cannot be reached. asyncpg
# reports refused or dropped connections as plain OSErrors.
STORAGE_ERRORS: tuple[type[Exception], ...] = (SQLAlchemyError, OSError)


def get_correlation_id() -> str:
    """Get or create a correlation ID for request tracing."""
    correlation_id: str | None = _correlation_id_var.get()
    if not correlation_id:
        correlation_id = str(uuid.uuid4())
        _correlation_id_var.set(correlation_id)
    return correlation_id


def set_correlation_id(correlation_id: str | None) -> None:
    _correlation_id_var.set(correlation_id)


class StructuredLogger:
    """Logger that adds the correlation id and scrubs keyword fields.

    Credentials are redacted. Prompts, documents and generated source are
    reduced to their length so a log line never carries user content.
    """

    def __init__(self, logger_name: str):
        self.logger = logging.getLogger(logger_name)

    def _log_with_context(
        self,
        level: int,
        message: str,
        extra_data: dict[str, Any] | None = None,
        exc_info: bool = False,
    ) -> None:
        correlation_id = get_correlation_id()
        sanitized_data = self._sanitize_data(extra_data or {})
        log_data = {
            "correlation_id": correlation_id,
            "message": message,
            **sanitized_data,
        }

        text = message
        if get_settings().ENVIRONMENT != "production":
            # JSON output carries the fields; plain text needs them inline
            details = " ".join(f"{k}={v}" for k, v in sanitized_data.items())
            text = f"[{correlation_id}] {message}"
            if details:
                text = f"{text} ({details})"
        self.logger.log(
            level, text, extra={"structured_data": log_data}, exc_info=exc_info
        )

    def _sanitize_data(self, data: dict[str, Any]) -> dict[str, Any]:
        if not isinstance(data, dict) or not data:
            return {}

        header_redaction = self._redact_header_like(data)
        if header_redaction is not None:
            return header_redaction

        sanitized: dict[str, Any] = {}
        for key, value in data.items():
            if is_sensitive_key(key):
                sanitized[key] = "[REDACTED]"
            elif is_payload_key(key) and isinstance(value, str):
                sanitized[key] = f"[{len(value)} chars]"
            else:
                sanitized[key] = self._sanitize_value(value)
        return sanitized

    def _sanitize_value(self, value: Any) -> Any:
        if isinstance(value, dict):
            return self._sanitize_data(value)
        if isinstance(value, list):
            return [self._sanitize_value(item) for item in value]
        return value

    def _redact_header_like(self, data: dict[str, Any]) -> dict[str, Any] | None:
        """Redact a `{name|key: ..., value: ...}` pair whose name is sensitive."""
        if "value" not in data or not ("name" in data or "key" in data):
            return None

        header_name = data.get("name") or data.get("key")
        if not isinstance(header_name, str) or not is_sensitive_key(header_name):
            return None

        redacted: dict[str, Any] = {}
        for sub_k, sub_v in data.items():
            if sub_k.lower() in {"value", "val", "v"}:
                redacted[sub_k] = "[REDACTED]"
            elif isinstance(sub_v, dict):
                redacted[sub_k] = self._sanitize_data(sub_v)
            else:
                redacted[sub_k] = "[REDACTED]" if is_sensitive_key(sub_k) else sub_v
        return redacted

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log_with_context(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log_with_context(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log_with_context(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log_with_context(logging.ERROR, message, kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log at ERROR level with the active exception's traceback."""
        self._log_with_context(logging.ERROR, message, kwargs, exc_info=True)


structured_logger = StructuredLogger(__name__)


class ExceptionNormalizationMiddleware(BaseHTTPMiddleware):
    """Catch any uncaught Exception and delegate to global_exception_handler."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:  # noqa: BLE001
            return await global_exception_handler(request, exc)


def _build_error_response(
    *,
    correlation_id: str,
    error_type: str,
    message: str,
    environment: str,
    details: dict[str, Any] | None = None,
    traceback_str: str | None = None,
    exception_type: str | None = None,
    validation_errors: Any | None = None,
    status_code: int = 500,
) -> JSONResponse:
    """Construct a sanitized JSON error response respecting environment rules."""
    allowed_fields = get_allowed_error_fields(environment)
    optional = {
        "details": details or None,
        "traceback": traceback_str,
        "exception_type": exception_type,
        "validation_errors": validation_errors,
    }

    error_body: dict[str, Any] = {"correlation_id": correlation_id, "type": error_type}
    error_body.update(
        (field, value)
        for field, value in optional.items()
        if field in allowed_fields and value is not None
    )

    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            message=message, error=error_body, success=False
        ).model_dump(),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map any exception raised while serving a request to an `ErrorResponse`.

    HTTP errors keep their status. Request validation errors are 422. Domain
    errors use `DOMAIN_STATUS_CODES` (400 when unmapped). An unreachable
    database is 503 so clients can retry; everything else is 500.
    """
    environment = get_settings().ENVIRONMENT
    correlation_id = get_correlation_id()
    debug = environment != "production"

    if isinstance(exc, StarletteHTTPException):
        return _build_error_response(
            correlation_id=correlation_id,
            error_type="http_error",
            message="An HTTP error occurred",
            environment=environment,
            details={"detail": exc.detail},
            exception_type=exc.__class__.__name__ if debug else None,
            status_code=exc.status_code,
        )

    if isinstance(exc, ValidationError | RequestValidationError):
        structured_logger.warning("Validation error", validation_errors=exc.errors())
        return _build_error_response(
            correlation_id=correlation_id,
            error_type="validation_error",
            message=ERROR_TYPE_MESSAGES[ValidationError],
            environment=environment,
            validation_errors=exc.errors(),
            status_code=422,
        )

    if isinstance(exc, DomainError):
        structured_logger.warning(
            "Domain error", error_type=exc.__class__.__name__, domain_message=str(exc)
        )
        return _build_error_response(
            correlation_id=correlation_id,
            error_type="domain_error",
            message=ERROR_TYPE_MESSAGES.get(type(exc), "Domain error"),
            environment=environment,
            details={"detail": str(exc)} if str(exc) else None,
            status_code=DOMAIN_STATUS_CODES.get(type(exc), 400),
        )

    if isinstance(exc, STORAGE_ERRORS):
        structured_logger.exception(
            "Project store unavailable", exception_type=exc.__class__.__name__
        )
        return _build_error_response(
            correlation_id=correlation_id,
            error_type="storage_unavailable",
            message="The project store is temporarily unavailable",
            environment=environment,
            exception_type=exc.__class__.__name__ if debug else None,
            status_code=503,
        )

    structured_logger.exception(
        "Unhandled exception", exception_type=exc.__class__.__name__, error=str(exc)
    )
    return _build_error_response(
        correlation_id=correlation_id,
        error_type="internal_server_error",
        message="An internal error occurred",
        environment=environment,
        traceback_str="".join(traceback.format_exception(exc)).strip()
        if debug
        else None,
        exception_type=exc.__class__.__name__ if debug else None,
    )


def setup_logging() -> None:
    """Install one stdout handler on the root logger (idempotent).

    Production logs are JSON with `structured_data` nested; other
    environments get plain text.
    """
    settings = get_settings()
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return

    production = settings.ENVIRONMENT == "production"
    log_level = logging.DEBUG if settings.ENVIRONMENT == "development" else logging.INFO

    formatter: logging.Formatter
    if production:
        formatter = JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level"},
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.setLevel(log_level)
    root_logger.setLevel(log_level)
    root_logger.addHandler(handler)

    if production:
        # Per-chunk provider and SQL chatter drowns out generation logs
        for noisy in ("uvicorn.access", "sqlalchemy.engine", "httpx", "openai"):
            logging.getLogger(noisy).setLevel(logging.WARNING)
