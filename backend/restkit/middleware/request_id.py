"""
restkit — Request ID Middleware
================================

What:  Generates a unique ID for each incoming request and echoes it back
       in the `x-request-id` response header.
How:   Derives a child scope carrying the ID (restkit.context), sets the
       ContextVar for loggers, and hands the child scope to the next stage.
When:  Runs for every HTTP request and never short-circuits. Place it
       before PreflightMiddleware if preflight answers should be tagged too.

The ID is always generated here. A client-supplied `x-request-id` header
is ignored, so every ID in the logs was minted by this service.
"""

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from restkit.context import new_request_id, request_id, request_id_var

HEADER_NAME = "x-request-id"


class RequestIDMiddleware:
    """Pure ASGI middleware that assigns a request ID and threads it downstream."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        child = new_request_id(scope)
        rid = request_id(child)

        async def send_with_request_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                headers = MutableHeaders(scope=message)
                headers[HEADER_NAME] = rid
            await send(message)

        token = request_id_var.set(rid)
        try:
            await self.app(child, receive, send_with_request_id)
        finally:
            request_id_var.reset(token)
