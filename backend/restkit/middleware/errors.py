"""
restkit — Unhandled Error Middleware
=====================================

Innermost stage of a Service. FastAPI's exception handlers turn known errors
into envelopes; anything they do not handle reaches this stage, which logs it
with the request ID and answers with the 500 envelope. Sitting inside the
registered middleware, the answer still passes through tracing and CORS.
"""

import logging
from typing import Optional

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from restkit.context import request_id
from restkit.envelope import internal


class UnhandledErrorMiddleware:
    def __init__(self, app: ASGIApp, logger: Optional[logging.Logger] = None) -> None:
        self.app = app
        self.logger = logger if logger is not None else logging.getLogger(__name__)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_tracking_start(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_tracking_start)
        except Exception as exc:
            if response_started:
                raise
            self.logger.error(
                "[%s] Unexpected error: %s",
                request_id(scope),
                str(exc),
                exc_info=exc,
            )
            await internal("unexpected %s", type(exc).__name__).with_message(
                "internal server error"
            ).write(send)
