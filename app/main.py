"""Repo-root Uvicorn entrypoint.

Allows running the server from the repo root:

    uvicorn app.main:app --port 3000

This simply re-exports the FastAPI app defined in `backend/todo_api/main.py`.
"""

from backend.todo_api.main import app  # re-export
