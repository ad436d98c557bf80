import threading
from uuid import uuid4

from ..schemas.todo import Todo


class TodoStore:
    """
    In-memory todo list for the lifetime of the process.

    Sync route handlers run on FastAPI's threadpool, so every access goes
    through one lock. Returned lists are copies.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._todos: list[Todo] = []

    def list_todos(self) -> list[Todo]:
        with self._lock:
            return list(self._todos)

    def add_todo(self, text: str) -> Todo:
        todo = Todo(id=uuid4().hex, text=text)
        with self._lock:
            self._todos.append(todo)
        return todo

    def update_todo(self, todo_id: str, text: str) -> Todo | None:
        with self._lock:
            for index, existing in enumerate(self._todos):
                if existing.id == todo_id:
                    updated = Todo(id=todo_id, text=text)
                    self._todos[index] = updated
                    return updated
        return None

    def delete_todo(self, todo_id: str) -> bool:
        with self._lock:
            before = len(self._todos)
            self._todos = [t for t in self._todos if t.id != todo_id]
            return len(self._todos) != before

    def clear(self) -> None:
        with self._lock:
            self._todos.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._todos)
