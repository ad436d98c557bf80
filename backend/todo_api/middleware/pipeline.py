"""
Ordered request pipeline.

Layers run in the order they were registered:

- a request layer runs while no error is pending; if it raises, that error
  becomes pending and the following request layers are skipped,
- an error layer runs only while an error is pending and answers with its
  response,
- ``ROUTES`` marks where the application's router runs.

An error only reaches error layers registered *after* the point where it was
raised. With ``[parser, error_layer, ROUTES]`` the error layer guards the
parser but never sees exceptions from the routes; those propagate to
Starlette's ServerErrorMiddleware and become a plain 500.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Sequence

from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

RequestHandler = Callable[[Request], Awaitable[None]]
ErrorHandler = Callable[[Exception, Request], Awaitable[Response]]


@dataclass(frozen=True)
class RequestLayer:
    handler: RequestHandler
    name: str = ""


@dataclass(frozen=True)
class ErrorLayer:
    handler: ErrorHandler
    name: str = ""


class _RoutesMarker:
    def __repr__(self) -> str:
        return "ROUTES"


ROUTES = _RoutesMarker()

Layer = RequestLayer | ErrorLayer | _RoutesMarker


def request_layer(handler: RequestHandler, name: str | None = None) -> RequestLayer:
    return RequestLayer(handler=handler, name=name or getattr(handler, "__name__", "request_layer"))


def error_layer(handler: ErrorHandler, name: str | None = None) -> ErrorLayer:
    return ErrorLayer(handler=handler, name=name or getattr(handler, "__name__", "error_layer"))


class _RecordingReceive:
    """Records what the layers read so the router can read the same body again."""

    def __init__(self, receive: Callable[[], Awaitable[dict]]):
        self._receive = receive
        self._consumed: list[dict] = []

    async def record(self) -> dict:
        message = await self._receive()
        self._consumed.append(message)
        return message

    async def replay(self) -> dict:
        if self._consumed:
            return self._consumed.pop(0)
        return await self._receive()


class RequestPipeline:
    """Pure ASGI middleware that walks `layers` for every HTTP request."""

    def __init__(self, app: Callable[..., Awaitable[Any]], layers: Sequence[Layer]):
        self.app = app
        self.layers = list(layers)
        if ROUTES not in self.layers:
            self.layers.append(ROUTES)
        routes_at = self.layers.index(ROUTES)
        self._routes_guarded = any(isinstance(layer, ErrorLayer) for layer in self.layers[routes_at + 1:])

    async def __call__(self, scope: dict, receive: Callable, send: Callable):
        if scope.get("type") != "http":
            return await self.app(scope, receive, send)

        recorder = _RecordingReceive(receive)
        request = Request(scope, recorder.record)
        error: Exception | None = None

        for layer in self.layers:
            if layer is ROUTES:
                if error is not None:
                    continue
                error = await self._call_routes(scope, recorder.replay, send)
                if error is None:
                    return
            elif isinstance(layer, RequestLayer):
                if error is not None:
                    continue
                try:
                    await layer.handler(request)
                except Exception as exc:
                    error = exc
            elif isinstance(layer, ErrorLayer):
                if error is None:
                    continue
                try:
                    response = await layer.handler(error, request)
                except Exception as exc:
                    logger.exception("Error layer %s failed", layer.name)
                    error = exc
                    continue
                await response(scope, recorder.replay, send)
                return

        if error is not None:
            raise error

    async def _call_routes(self, scope: dict, receive: Callable, send: Callable) -> Exception | None:
        if not self._routes_guarded:
            await self.app(scope, receive, send)
            return None

        response_started = False

        async def _send(message: dict) -> None:
            nonlocal response_started
            if message.get("type") == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, _send)
        except Exception as exc:
            if response_started:
                raise
            return exc
        return None
