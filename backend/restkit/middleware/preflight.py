"""
restkit — Preflight Short-circuit Middleware
=============================================

Browsers probe cross-origin permissions with an `OPTIONS` request before the
real one. The probe never needs a handler, so this stage answers it with the
204 no-content envelope and does not call the next stage.
"""

from starlette.types import ASGIApp, Receive, Scope, Send

from restkit.envelope import no_content

PREFLIGHT_METHOD = "OPTIONS"


class PreflightMiddleware:
    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        # Exact match: "options", " OPTIONS" or "OPTIONS,GET" go to the handler.
        if scope["type"] == "http" and scope["method"] == PREFLIGHT_METHOD:
            await no_content().write(send)
            return

        await self.app(scope, receive, send)
