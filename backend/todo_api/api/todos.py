import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request

from ..middleware.body_parser import parsed_body
from ..schemas.todo import Todo, TodoCreatedResponse, TodoListResponse, TodoMutationResponse
from ..services.todo_store import TodoStore
from ..utils.error_handlers import get_error_message
from ..utils.validation import require_object, validate_todo_text

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Todos"])


def get_todo_store(request: Request) -> TodoStore:
    return request.app.state.todo_store


def _public_todos(todos: list[Todo]) -> list[dict]:
    return [t.model_dump() for t in todos]


@router.get("/", response_model=TodoListResponse)
def list_todos(store: TodoStore = Depends(get_todo_store)):
    return {"todos": _public_todos(store.list_todos())}


@router.post("/todo", status_code=201, response_model=TodoCreatedResponse)
def create_todo(body: Any = Depends(parsed_body), store: TodoStore = Depends(get_todo_store)):
    payload = require_object(body)
    text = validate_todo_text(payload.get("text"))

    todo = store.add_todo(text)
    logger.info("Added todo %s", todo.id)
    return {
        "message": "Added todo",
        "todo": todo.model_dump(),
        "todos": _public_todos(store.list_todos()),
    }


@router.put("/todo/{todo_id}", response_model=TodoMutationResponse)
def update_todo(todo_id: str, body: Any = Depends(parsed_body), store: TodoStore = Depends(get_todo_store)):
    payload = require_object(body)
    text = validate_todo_text(payload.get("text"))

    updated = store.update_todo(todo_id, text)
    if updated is None:
        raise HTTPException(status_code=404, detail=get_error_message("todo_not_found"))

    logger.info("Updated todo %s", todo_id)
    return {"message": "Updated todo", "todos": _public_todos(store.list_todos())}


@router.delete("/todo/{todo_id}", response_model=TodoMutationResponse)
def delete_todo(todo_id: str, store: TodoStore = Depends(get_todo_store)):
    # Unknown ids are not an error; the list is simply returned unchanged.
    if store.delete_todo(todo_id):
        logger.info("Deleted todo %s", todo_id)
    return {"message": "Deleted todo", "todos": _public_todos(store.list_todos())}
