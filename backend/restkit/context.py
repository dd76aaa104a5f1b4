"""
restkit — Request Identifier Context
=====================================

What:  Attaches and reads the per-request unique identifier.
How:   The identifier lives in the ASGI scope's `state` dict (what
       `request.state.request_id` reads) and is mirrored into a ContextVar
       so loggers can reach it without a request object.
Who:   Written once by RequestIDMiddleware; read by handlers, exception
       handlers, and the logging filter.

The scope is never modified in place: `new_request_id` returns a child
scope, and the parent keeps whatever it had before.
"""

import uuid
from contextvars import ContextVar
from typing import Any, Mapping, MutableMapping, Union

from starlette.requests import HTTPConnection

# Returned when no identifier was ever attached.
MISSING_REQUEST_ID = "<missing-request-id>"

STATE_KEY = "request_id"

# Coroutine-local copy of the current request's identifier.
request_id_var: ContextVar[str] = ContextVar("request_id", default=MISSING_REQUEST_ID)


def new_request_id(scope: Mapping[str, Any]) -> MutableMapping[str, Any]:
    """
    Derive a child scope carrying a freshly generated request identifier.

    The identifier is a random (version 4) UUID in its canonical 36-character
    form. The `state` dict is copied so that the parent scope, and anything
    still holding it, never observes the new value.
    """
    state = dict(scope.get("state") or {})
    state[STATE_KEY] = str(uuid.uuid4())
    child = dict(scope)
    child["state"] = state
    return child


def request_id(source: Union[HTTPConnection, Mapping[str, Any]]) -> str:
    """Return the identifier attached to a request or scope, or the sentinel."""
    scope = source.scope if isinstance(source, HTTPConnection) else source
    state = scope.get("state") or {}
    rid = state.get(STATE_KEY)
    if not isinstance(rid, str) or not rid:
        return MISSING_REQUEST_ID
    return rid


def current_request_id() -> str:
    """Identifier of the request being served by the current task."""
    return request_id_var.get()
