"""
restkit — Middleware Package
=============================

Cross-cutting stages wrapped around the router. Each one is an ASGI
factory: it takes the next stage and returns a new stage.

Chain of a Service (outer → inner):
    Request → [CORS policy] → [registered middleware, in registration order]
            → [unhandled error catch-all] → Router

    CORS policy is always outermost so its headers decorate every response,
    including ones produced by an inner short-circuit.

    Between RequestIDMiddleware and PreflightMiddleware the order is the
    caller's choice: tracing registered first also tags preflight answers.
"""

from restkit.middleware.cors import EnvelopeCORSMiddleware
from restkit.middleware.errors import UnhandledErrorMiddleware
from restkit.middleware.logging import AccessLogMiddleware
from restkit.middleware.preflight import PreflightMiddleware
from restkit.middleware.request_id import RequestIDMiddleware

__all__ = [
    "AccessLogMiddleware",
    "EnvelopeCORSMiddleware",
    "PreflightMiddleware",
    "RequestIDMiddleware",
    "UnhandledErrorMiddleware",
]
