from __future__ import annotations

import logging
from typing import Any

from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Failure that maps onto a JSON error envelope with an HTTP status."""

    status_code = 500
    default_message = "Failed to complete request"

    def __init__(self, message: str | None = None, *, status_code: int | None = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def payload(self) -> dict[str, Any]:
        return {"success": False, "error": self.message}

    def headers(self) -> dict[str, str] | None:
        return None


class UnauthorizedError(AppError):
    status_code = 401
    default_message = "Unauthorized"


class TooManyRequestsError(AppError):
    status_code = 429
    default_message = "Too many requests. Please try again later."

    def __init__(self, retry_after: int = 60, message: str | None = None):
        super().__init__(message)
        self.retry_after = max(1, int(retry_after))

    def headers(self) -> dict[str, str]:
        return {"Retry-After": str(self.retry_after)}


class InputValidationError(AppError):
    status_code = 400
    default_message = "Invalid request data"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class ConflictError(AppError):
    status_code = 409
    default_message = "Content was modified elsewhere"


class RequestTimeoutError(AppError):
    status_code = 504
    default_message = "Request timed out. Please try again."


class ExternalServiceError(AppError):
    status_code = 502
    default_message = "External service unavailable. Please try again later."


class ServiceUnavailableError(ExternalServiceError):
    default_message = "PDF service unavailable. Please try again later."


class AIServiceError(ExternalServiceError):
    """The model provider could not be reached or answered with an error status."""

    default_message = "AI service unavailable. Please try again later."


class AIResponseError(ExternalServiceError):
    """The model answered, but not with something usable."""

    default_message = "AI returned an unusable response"


class EmptyResponseError(AIResponseError):
    default_message = "No AI response"


class MalformedJSONError(AIResponseError):
    default_message = "Invalid JSON response from AI"


class SchemaValidationError(AppError):
    """A payload failed its shape check. ``shape`` names the schema."""

    status_code = 500
    default_message = "AI returned malformed response"

    def __init__(
        self,
        shape: str,
        summary: str,
        *,
        message: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message, status_code=status_code)
        self.shape = shape
        self.summary = summary


class ContentTooShortError(AppError):
    status_code = 400
    default_message = "Content too short"


class ContentTooLongError(AppError):
    status_code = 400
    default_message = "Content too long"


class LatexCompileError(AppError):
    status_code = 422
    default_message = "LaTeX compilation failed"

    def __init__(self, details: str = "", message: str | None = None):
        super().__init__(message)
        self.details = details

    def payload(self) -> dict[str, Any]:
        return {"success": False, "error": self.message, "details": self.details}


class CompileUnavailableError(AppError):
    status_code = 503
    default_message = "Compilation temporarily unavailable"

    def payload(self) -> dict[str, Any]:
        return {"success": False, "error": self.message, "fallback": True}


def error_response(exc: AppError) -> JSONResponse:
    return JSONResponse(exc.payload(), status_code=exc.status_code, headers=exc.headers())


def handle_api_error(
    exc: Exception,
    *,
    timeout_message: str = "Request timed out. Please try again.",
    external_service_message: str = "External service unavailable. Please try again later.",
    external_service_status: int = 502,
    default_message: str = "Failed to complete request",
) -> JSONResponse:
    """Map a failure raised inside a route body onto the JSON envelope.

    Timeouts and dependency faults get the call site's wording. Kinds that
    already carry a user-facing message (validation, not-found, conflict,
    schema, AI provider faults) keep it. Anything else is logged and
    reported generically.
    """
    if isinstance(exc, RequestTimeoutError):
        return error_response(RequestTimeoutError(timeout_message))
    if isinstance(exc, (AIServiceError, AIResponseError)):
        return error_response(exc)
    if isinstance(exc, ExternalServiceError):
        return error_response(
            ExternalServiceError(external_service_message, status_code=external_service_status)
        )
    if isinstance(exc, AppError):
        return error_response(exc)

    logger.exception("Unhandled error: %s", exc)
    return error_response(AppError(default_message))
