import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import APIRouter, FastAPI, HTTPException

from . import config
from .api import todos as todos_api
from .middleware.body_parser import json_body_parser
from .middleware.pipeline import ROUTES, Layer, RequestPipeline, error_layer
from .services.todo_store import TodoStore
from .utils.error_handlers import http_exception_handler, not_found_error_layer

logger = logging.getLogger(__name__)


def build_layers(*, body_limit: int, guard_routes: bool) -> list[Layer]:
    parser = json_body_parser(limit=body_limit)
    not_found = error_layer(not_found_error_layer, name="not_found_error_layer")
    if guard_routes:
        return [parser, ROUTES, not_found]
    # Registered ahead of the routes: this layer only sees body-parser errors.
    # Exceptions raised inside routes skip it and become the default 500.
    return [parser, not_found, ROUTES]


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Todo API started (layers: %s)", ", ".join(_layer_names(app.state.layers)))
    try:
        yield
    finally:
        app.state.todo_store.clear()
        logger.info("Todo API stopped")


def _layer_names(layers: list[Layer]) -> list[str]:
    return [getattr(layer, "name", "") or repr(layer) for layer in layers]


def health_check():
    """Health check endpoint."""
    return {"status": "ok", "service": "todo-api"}


def create_app(
    *,
    todos_router: APIRouter | None = None,
    body_limit: int = config.BODY_LIMIT_BYTES,
    guard_routes: bool = config.ERROR_HANDLER_GUARDS_ROUTES,
) -> FastAPI:
    """
    Build the application: JSON body parser, 404 error layer, todos routes.

    `todos_router` replaces the bundled in-memory todos routes. With
    `guard_routes=True` the error layer is registered after the routes so it
    also answers for exceptions raised inside them.
    """
    app = FastAPI(title="Todo API", lifespan=lifespan)

    app.state.todo_store = TodoStore()
    app.state.layers = build_layers(body_limit=body_limit, guard_routes=guard_routes)

    app.add_middleware(RequestPipeline, layers=app.state.layers)
    app.add_exception_handler(HTTPException, http_exception_handler)

    app.include_router(todos_router if todos_router is not None else todos_api.router)
    app.add_api_route("/health", health_check, methods=["GET"])

    return app


app = create_app()


def run(host: str = config.HOST, port: int = config.PORT) -> None:
    """Serve `app` until the process is stopped. A busy port ends the process."""
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info("Listening on %s:%s", host, port)
    uvicorn.run(app, host=host, port=port, log_level=config.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
