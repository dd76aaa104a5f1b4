"""
restkit — Response Envelope
============================

What:  The two result shapes every handler produces and their JSON wire format.
How:   `SuccessResponse` is a frozen pydantic model; `ErrorResponse` is an
       exception so handlers can `raise` it. Both render into a Starlette
       `Response` and can write themselves straight onto an ASGI `send`.

Wire format:
    success, payload    {"status": 200, "message": "...", "data": ..., "ts": 1700000000}
    success, message    {"status": 200, "message": "...", "ts": 1700000000}
    success, neither    empty body (204 No Content)
    error               {"status": 404, "error": "...", "ts": 1700000000}

Every envelope carries `content-type: application/json`.

Ordering guarantee:
    A cookie directive is part of the rendered response headers, and the
    headers travel in the `http.response.start` message. The body is encoded
    before that message is sent, so neither a late cookie nor an encoding
    failure can happen after the status line is on the wire.

Security:
    `ErrorResponse.cause` is for server-side logs only. The serialized body
    contains the public `message` and nothing else.
"""

import time
from datetime import datetime
from typing import Any, Dict, Literal, Optional, Union

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ConfigDict
from starlette import status
from starlette.responses import JSONResponse, Response
from starlette.types import Send

from restkit.exceptions import EnvelopeEncodeError, RestKitError

JSON_MEDIA_TYPE = "application/json"


def _timestamp() -> int:
    return int(time.time())


def _json_response(status_code: int, body: Dict[str, Any]) -> Response:
    try:
        return JSONResponse(content=jsonable_encoder(body), status_code=status_code)
    except (TypeError, ValueError) as exc:
        raise EnvelopeEncodeError(
            context={"status": status_code, "reason": str(exc)},
        ) from exc


async def _emit(response: Response, send: Send) -> None:
    await send(
        {
            "type": "http.response.start",
            "status": response.status_code,
            "headers": response.raw_headers,
        }
    )
    await send({"type": "http.response.body", "body": response.body})


# ══════════════════════════════════════════════════════════════════════════
# Success
# ══════════════════════════════════════════════════════════════════════════


class Cookie(BaseModel):
    """A `Set-Cookie` directive, same fields as `Response.set_cookie`."""

    model_config = ConfigDict(frozen=True)

    key: str
    value: str = ""
    max_age: Optional[int] = None
    expires: Optional[Union[datetime, str, int]] = None
    path: Optional[str] = "/"
    domain: Optional[str] = None
    secure: bool = False
    httponly: bool = False
    samesite: Optional[Literal["lax", "strict", "none"]] = "lax"

    def apply(self, response: Response) -> None:
        response.set_cookie(
            key=self.key,
            value=self.value,
            max_age=self.max_age,
            expires=self.expires,
            path=self.path,
            domain=self.domain,
            secure=self.secure,
            httponly=self.httponly,
            samesite=self.samesite,
        )


class SuccessResponse(BaseModel):
    """
    Immutable success envelope.

    `with_data` and `with_cookie` return modified copies, so a module-level
    base response can be shared between handlers:

        created = ok("created")

        @router.post("/notes")
        async def create_note() -> SuccessResponse:
            return created.with_data({"id": 42})
    """

    model_config = ConfigDict(frozen=True)

    status_code: int
    message: str = ""
    payload: Any = None
    cookie: Optional[Cookie] = None

    def with_data(self, data: Any) -> "SuccessResponse":
        return self.model_copy(update={"payload": data})

    def with_cookie(self, cookie: Cookie) -> "SuccessResponse":
        return self.model_copy(update={"cookie": cookie})

    def render(self) -> Response:
        """Build the Starlette response for this envelope (cookie, headers, status, body)."""
        if self.payload is not None:
            response = _json_response(
                self.status_code,
                {
                    "status": self.status_code,
                    "message": self.message,
                    "data": self.payload,
                    "ts": _timestamp(),
                },
            )
        elif self.message:
            response = _json_response(
                self.status_code,
                {"status": self.status_code, "message": self.message, "ts": _timestamp()},
            )
        else:
            response = Response(status_code=self.status_code, media_type=JSON_MEDIA_TYPE)

        if self.cookie is not None:
            self.cookie.apply(response)
        return response

    async def write(self, send: Send) -> None:
        await _emit(self.render(), send)


def ok(message: str) -> SuccessResponse:
    return SuccessResponse(status_code=status.HTTP_200_OK, message=message)


def no_content() -> SuccessResponse:
    return SuccessResponse(status_code=status.HTTP_204_NO_CONTENT)


# ══════════════════════════════════════════════════════════════════════════
# Errors
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(RestKitError):
    """
    Error envelope raised by handlers.

    Attributes:
        status_code: HTTP status written to the client
        cause:       Internal diagnostic text (logged, never serialized)
        message:     Public text sent as the `error` field

    Built in two steps, each producing a new value:

        raise not_found("note %s missing in shard %d", note_id, shard).with_message(
            "note not found"
        )
    """

    def __init__(self, status_code: int, cause: str = "", message: str = ""):
        super().__init__(message=message, context={"status": status_code, "cause": cause})
        self.status_code = status_code
        self.cause = cause

    def __str__(self) -> str:
        return self.cause

    def __repr__(self) -> str:
        return f"ErrorResponse(status_code={self.status_code!r}, cause={self.cause!r})"

    def with_message(self, message: str) -> "ErrorResponse":
        clone = ErrorResponse(self.status_code, self.cause, message)
        clone.__cause__ = self.__cause__
        return clone

    def render(self) -> Response:
        return _json_response(
            self.status_code,
            {"status": self.status_code, "error": self.message, "ts": _timestamp()},
        )

    async def write(self, send: Send) -> None:
        await _emit(self.render(), send)


def _format(cause: str, args: tuple) -> str:
    if not args:
        return cause
    try:
        return cause % args
    except (TypeError, ValueError):
        # Mismatched arguments are appended to the cause unformatted.
        return f"{cause} {args!r}"


def bad_request(cause: str = "", *args: Any) -> ErrorResponse:
    return ErrorResponse(status.HTTP_400_BAD_REQUEST, _format(cause, args))


def not_authorized(cause: str = "", *args: Any) -> ErrorResponse:
    return ErrorResponse(status.HTTP_401_UNAUTHORIZED, _format(cause, args))


def forbidden(cause: str = "", *args: Any) -> ErrorResponse:
    return ErrorResponse(status.HTTP_403_FORBIDDEN, _format(cause, args))


def not_found(cause: str = "", *args: Any) -> ErrorResponse:
    return ErrorResponse(status.HTTP_404_NOT_FOUND, _format(cause, args))


def internal(cause: str = "", *args: Any) -> ErrorResponse:
    return ErrorResponse(status.HTTP_500_INTERNAL_SERVER_ERROR, _format(cause, args))


# ── Write shortcuts: public message only, empty cause ─────────────────────


async def write_bad_request(send: Send, message: str) -> None:
    await bad_request().with_message(message).write(send)


async def write_not_authorized(send: Send, message: str) -> None:
    await not_authorized().with_message(message).write(send)


async def write_forbidden(send: Send, message: str) -> None:
    await forbidden().with_message(message).write(send)


async def write_not_found(send: Send, message: str) -> None:
    await not_found().with_message(message).write(send)


async def write_internal(send: Send, message: str) -> None:
    await internal().with_message(message).write(send)
