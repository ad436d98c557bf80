"""
Centralized error types, user-facing messages and the error layer.
"""
import logging

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base application error."""
    def __init__(self, message: str, status_code: int = 500, details: dict | None = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class BodyParseError(AppError):
    """Raised by the JSON body parser; `type` names the failure kind."""
    def __init__(self, message: str, status_code: int = 400, type: str = "entity.parse.failed"):
        super().__init__(message, status_code=status_code, details={"type": type})
        self.type = type


# User-facing messages for the todos routes
ERROR_MESSAGES = {
    "todo_not_found": "Could not find todo for this id.",
    "text_required": "text is required",
    "text_not_string": "text must be a string",
    "text_empty": "text cannot be empty",
    "text_too_long": "text must not exceed 1000 characters",
    "server_error": "Something went wrong on our end. Please try again later.",
}


def get_error_message(error_key: str) -> str:
    """Get a user-friendly error message."""
    return ERROR_MESSAGES.get(error_key, ERROR_MESSAGES["server_error"])


def _message_of(exc: Exception) -> str:
    if isinstance(exc, AppError):
        return exc.message
    if isinstance(exc, HTTPException):
        return str(exc.detail)
    return str(exc)


async def not_found_error_layer(exc: Exception, request: Request) -> JSONResponse:
    """
    Error layer: every error that reaches it becomes a 404 with the error text.

    Parse failures, oversized bodies and internal errors all share the 404
    status here; callers must not rely on the status to tell them apart.
    """
    message = _message_of(exc)
    logger.warning("%s %s failed: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=404, content={"message": message})


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render controlled route failures as {"message": ...}."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )
