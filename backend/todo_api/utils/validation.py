"""
Validation helpers for request bodies the JSON parser has already decoded.
"""
from typing import Any

from fastapi import HTTPException

from .error_handlers import get_error_message

MAX_TODO_TEXT = 1000


def require_object(body: Any) -> dict:
    """Route handlers expect a JSON object; arrays are rejected."""
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return body


def validate_todo_text(value: Any) -> str:
    """Validate the `text` field of a todo payload."""
    if value is None:
        raise HTTPException(status_code=400, detail=get_error_message("text_required"))

    if not isinstance(value, str):
        raise HTTPException(status_code=400, detail=get_error_message("text_not_string"))

    value = value.strip()
    if not value:
        raise HTTPException(status_code=400, detail=get_error_message("text_empty"))

    if len(value) > MAX_TODO_TEXT:
        raise HTTPException(status_code=400, detail=get_error_message("text_too_long"))

    return value
