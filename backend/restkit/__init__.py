"""
restkit — HTTP Service Helper Layer
====================================

What: Uniform JSON response envelopes and a small builder for FastAPI services.

Architecture Note:

    ┌─────────────────────────────────────┐
    │       Service (service.py)          │  ← address, CORS, middleware, listen
    ├─────────────────────────────────────┤
    │   Middleware (middleware/)          │  ← preflight, request ID, CORS, access log
    ├─────────────────────────────────────┤
    │  Envelope & routing (envelope.py,   │  ← success/error wire format
    │  routing.py)                        │
    ├─────────────────────────────────────┤
    │   Identifier context (context.py)   │  ← per-request ID
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"

from restkit.config import CORSPolicy, ServiceConfig, Settings  # noqa: E402
from restkit.context import MISSING_REQUEST_ID, new_request_id, request_id  # noqa: E402
from restkit.envelope import (  # noqa: E402
    Cookie,
    ErrorResponse,
    SuccessResponse,
    bad_request,
    forbidden,
    internal,
    no_content,
    not_authorized,
    not_found,
    ok,
    write_bad_request,
    write_forbidden,
    write_internal,
    write_not_authorized,
    write_not_found,
)
from restkit.exceptions import (  # noqa: E402
    EnvelopeEncodeError,
    ListenError,
    RestKitError,
    ServiceStateError,
)
from restkit.routing import EnvelopeRoute, decode  # noqa: E402
from restkit.service import Service, ServiceBuilder, ServiceState  # noqa: E402

__all__ = [
    "CORSPolicy",
    "Cookie",
    "EnvelopeEncodeError",
    "EnvelopeRoute",
    "ErrorResponse",
    "ListenError",
    "MISSING_REQUEST_ID",
    "RestKitError",
    "Service",
    "ServiceBuilder",
    "ServiceConfig",
    "ServiceState",
    "ServiceStateError",
    "Settings",
    "SuccessResponse",
    "bad_request",
    "decode",
    "forbidden",
    "internal",
    "new_request_id",
    "no_content",
    "not_authorized",
    "not_found",
    "ok",
    "request_id",
    "write_bad_request",
    "write_forbidden",
    "write_internal",
    "write_not_authorized",
    "write_not_found",
]
