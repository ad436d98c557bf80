import os
import sys
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient


# Ensure `import backend.todo_api...` works regardless of where pytest is run from.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Must be set before backend.todo_api.config is imported so a local .env can't
# change ports, limits or the error-layer ordering under the tests.
os.environ["DISABLE_DOTENV"] = "1"
os.environ.pop("ERROR_HANDLER_GUARDS_ROUTES", None)
for _name in ("BODY_LIMIT_BYTES", "HOST", "PORT", "LOG_LEVEL"):
    os.environ.pop(_name, None)


@pytest.fixture()
def app() -> FastAPI:
    """A fresh application with its own empty todo store."""
    from backend.todo_api.main import create_app

    return create_app()


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    # Unhandled route errors must come back as the framework's 500 response
    # instead of being re-raised into the test.
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture()
def guarded_client() -> TestClient:
    """Client for an app whose error layer is registered after the routes."""
    from backend.todo_api.main import create_app

    return TestClient(create_app(guard_routes=True), raise_server_exceptions=False)


@pytest.fixture()
def anyio_backend() -> str:
    return "asyncio"
