"""
JSON body parsing layer.

Only `application/json` requests are parsed, and only objects and arrays are
accepted at the top level.
Gzip and deflate bodies are inflated; bodies over the limit are rejected.
Whatever happens, `request.state.body` is at least `{}` afterwards.
"""
import json
import logging
import re
import zlib
from typing import Any

from fastapi import Request
from starlette.requests import ClientDisconnect

from ..config import BODY_LIMIT_BYTES
from ..utils.error_handlers import BodyParseError
from .pipeline import RequestLayer, request_layer

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"
SUPPORTED_ENCODINGS = {"identity", "gzip", "deflate"}

_FIRST_CHAR = re.compile(r"^[\x20\x09\x0a\x0d]*([^\x20\x09\x0a\x0d])")


def _content_type(request: Request) -> tuple[str, dict[str, str]]:
    raw = request.headers.get("content-type") or ""
    parts = [p.strip() for p in raw.split(";")]
    media_type = parts[0].lower() if parts else ""
    params: dict[str, str] = {}
    for part in parts[1:]:
        if "=" not in part:
            continue
        key, value = part.split("=", 1)
        params[key.strip().lower()] = value.strip().strip('"')
    return media_type, params


def _deflate_wbits(head: bytes) -> int:
    # Some clients send raw deflate without the zlib header.
    if len(head) >= 2 and head[0] & 0x0F == 8 and (head[0] << 8 | head[1]) % 31 == 0:
        return zlib.MAX_WBITS
    return -zlib.MAX_WBITS


def _too_large() -> BodyParseError:
    return BodyParseError("request entity too large", status_code=413, type="entity.too.large")


class _Inflater:
    """
    Decodes the body chunk by chunk, never producing more than `limit + 1`
    bytes in total.
    """

    def __init__(self, encoding: str, limit: int):
        self.encoding = encoding
        self.limit = limit
        self.size = 0
        self._pending = b""
        self._decompressor = None
        if encoding == "gzip":
            self._decompressor = zlib.decompressobj(16 + zlib.MAX_WBITS)

    def _count(self, data: bytes) -> bytes:
        self.size += len(data)
        if self.size > self.limit:
            raise _too_large()
        return data

    def _decompress(self, data: bytes) -> bytes:
        try:
            return self._count(self._decompressor.decompress(data, self.limit + 1 - self.size))
        except zlib.error as e:
            raise BodyParseError(str(e), status_code=400, type="encoding.failed") from e

    def feed(self, data: bytes) -> bytes:
        if self.encoding == "identity":
            return self._count(data)
        if self._decompressor is None:
            self._pending += data
            if len(self._pending) < 2:
                return b""
            data, self._pending = self._pending, b""
            self._decompressor = zlib.decompressobj(_deflate_wbits(data))
        return self._decompress(data)

    def finish(self) -> bytes:
        if self.encoding == "identity":
            return b""
        out = b""
        if self._decompressor is None:
            if not self._pending:
                return b""
            data, self._pending = self._pending, b""
            self._decompressor = zlib.decompressobj(_deflate_wbits(data))
            out = self._decompress(data)
        try:
            out += self._count(self._decompressor.flush())
        except zlib.error as e:
            raise BodyParseError(str(e), status_code=400, type="encoding.failed") from e
        if not self._decompressor.eof:
            raise BodyParseError("unexpected end of file", status_code=400, type="encoding.failed")
        return out


def _strict_syntax_error(text: str, char: str) -> BodyParseError:
    position = text.index(char)
    return BodyParseError(f"Unexpected token {char} in JSON at position {position}")


def parse_json_text(text: str) -> Any:
    """Parse a decoded body in strict mode (top level must be an object or array)."""
    match = _FIRST_CHAR.match(text)
    if match and match.group(1) not in ("{", "["):
        raise _strict_syntax_error(text, match.group(1))
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise BodyParseError(str(e)) from e


async def read_body(request: Request, *, limit: int, encoding: str = "identity") -> bytes:
    """Read and inflate the body; both the raw and the inflated size are capped at `limit`."""
    if encoding == "identity":
        declared = request.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > limit:
            raise _too_large()

    inflater = _Inflater(encoding, limit)
    chunks: list[bytes] = []
    received = 0
    try:
        async for chunk in request.stream():
            received += len(chunk)
            if received > limit:
                raise _too_large()
            chunks.append(inflater.feed(chunk))
    except ClientDisconnect as e:
        raise BodyParseError("request aborted", status_code=400, type="request.aborted") from e
    if received:
        chunks.append(inflater.finish())
    return b"".join(chunks)


def json_body_parser(limit: int = BODY_LIMIT_BYTES) -> RequestLayer:
    """Build the request layer that fills `request.state.body`."""

    async def parse_json_body(request: Request) -> None:
        request.state.body = {}

        media_type, params = _content_type(request)
        if media_type != JSON_MEDIA_TYPE:
            return

        charset = (params.get("charset") or "utf-8").lower()
        if not charset.startswith("utf-"):
            raise BodyParseError(
                f'unsupported charset "{charset.upper()}"',
                status_code=415,
                type="charset.unsupported",
            )

        encoding = (request.headers.get("content-encoding") or "identity").lower()
        if encoding not in SUPPORTED_ENCODINGS:
            raise BodyParseError(
                f'unsupported content encoding "{encoding}"',
                status_code=415,
                type="encoding.unsupported",
            )

        body = await read_body(request, limit=limit, encoding=encoding)
        if not body:
            return

        try:
            text = body.decode(charset, errors="replace")
        except LookupError as e:
            raise BodyParseError(
                f'unsupported charset "{charset.upper()}"',
                status_code=415,
                type="charset.unsupported",
            ) from e
        if text.startswith("\ufeff"):
            text = text[1:]

        request.state.body = parse_json_text(text)
        logger.debug("Parsed JSON body for %s %s", request.method, request.url.path)

    return request_layer(parse_json_body, name="json_body_parser")


def parsed_body(request: Request) -> Any:
    """FastAPI dependency returning the parsed JSON body (or {})."""
    return getattr(request.state, "body", {})
