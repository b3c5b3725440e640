"""An HTTP endpoint that reports and changes an AtomicLevel."""

from __future__ import annotations

import json
import re
from http import HTTPStatus
from typing import Any, Callable, Iterable, Iterator, Union
from urllib.parse import unquote_plus

from zapkit.level import AtomicLevel, Level

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")

Body = Union[bytes, bytearray, str]


def _as_text(data: Body) -> str:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data).decode("utf-8", errors="replace")
    return data


def _form_pairs(text: str) -> Iterator[tuple[str, str]]:
    """Yield decoded key/value pairs, skipping malformed ones."""
    for piece in text.split("&"):
        if not piece or ";" in piece:
            continue
        key, _, value = piece.partition("=")
        if _BAD_ESCAPE.search(key) or _BAD_ESCAPE.search(value):
            continue
        yield unquote_plus(key), unquote_plus(value)


def _form_value(name: str, *sources: str) -> str:
    for source in sources:
        for key, value in _form_pairs(source):
            if key == name:
                return value
    return ""


def _parse_level(text: str) -> Level:
    try:
        return Level.parse(text)
    except ValueError:
        lowered = text.lower()
        if lowered == text:
            raise
    try:
        return Level.parse(lowered)
    except ValueError:
        raise ValueError(f'unrecognized level: "{text}"') from None


def _decode_put_url(query: str, body: str) -> Level:
    text = _form_value("level", body, query)
    if text == "":
        raise ValueError("must specify logging level")
    return _parse_level(text)


def _decode_put_json(body: str) -> Level:
    try:
        value, _ = json.JSONDecoder().raw_decode(body.lstrip())
    except json.JSONDecodeError as exc:
        raise ValueError(f"malformed request body: {exc}") from exc
    if value is None:
        raise ValueError("must specify logging level")
    if not isinstance(value, dict):
        raise ValueError(
            f"malformed request body: cannot decode {type(value).__name__} into an object"
        )
    raw = value.get("level")
    if "level" not in value:
        raw = next((v for k, v in value.items() if k.lower() == "level"), None)
    if raw is None:
        raise ValueError("must specify logging level")
    if not isinstance(raw, str):
        raise ValueError("malformed request body: level must be a string")
    try:
        return _parse_level(raw)
    except ValueError as exc:
        raise ValueError(f"malformed request body: {exc}") from exc


def _decode_put(content_type: str, query: str, body: str) -> Level:
    if content_type == FORM_CONTENT_TYPE:
        return _decode_put_url(query, body)
    return _decode_put_json(body)


def handle_level_request(
    level: AtomicLevel,
    method: str,
    content_type: str = "",
    query: str = "",
    body: Body = b"",
) -> tuple[int, dict[str, str]]:
    """Serve a GET or PUT on ``level``; return the status code and JSON payload.

    A form-encoded PUT takes the level from the body, then the query string;
    any other PUT expects a JSON body such as ``{"level":"warn"}``.
    """
    if method == "GET":
        return HTTPStatus.OK, {"level": str(level.level())}
    if method == "PUT":
        try:
            requested = _decode_put(content_type, query, _as_text(body))
        except ValueError as exc:
            return HTTPStatus.BAD_REQUEST, {"error": str(exc)}
        level.set_level(requested)
        return HTTPStatus.OK, {"level": str(level.level())}
    return HTTPStatus.METHOD_NOT_ALLOWED, {"error": "Only GET and PUT are supported."}


def _read_body(environ: dict[str, Any]) -> bytes:
    length_text = environ.get("CONTENT_LENGTH") or ""
    stream = environ.get("wsgi.input")
    if stream is None or not length_text.strip():
        return b""
    try:
        length = int(length_text)
    except ValueError:
        return b""
    return stream.read(length) if length > 0 else b""


def level_app(level: AtomicLevel) -> Callable[..., Iterable[bytes]]:
    """Return a WSGI application serving ``level`` as a JSON endpoint."""

    def app(environ: dict[str, Any], start_response: Callable[..., Any]) -> Iterable[bytes]:
        status, payload = handle_level_request(
            level,
            environ.get("REQUEST_METHOD", "GET"),
            environ.get("CONTENT_TYPE", "") or "",
            environ.get("QUERY_STRING", "") or "",
            _read_body(environ),
        )
        data = (json.dumps(payload, separators=(",", ":")) + "\n").encode("utf-8")
        code = HTTPStatus(status)
        start_response(
            f"{code.value} {code.phrase}",
            [("Content-Type", "application/json"), ("Content-Length", str(len(data)))],
        )
        return [data]

    return app