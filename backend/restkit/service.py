"""
restkit — Service
==================

What:  Builds a FastAPI application from a frozen ServiceConfig and serves it.
How:   `ServiceBuilder` collects the bind address, CORS policy and middleware;
       `build()` freezes them into a `Service`. The Service hands out
       prefix-scoped routers, assembles the app once, and `listen()` binds the
       socket and runs uvicorn on it.
Who:   Application entry points:

           builder = ServiceBuilder().with_addr("0.0.0.0:8000").with_tracing()
           service = builder.build()
           notes = service.route("/api/notes")

           @notes.post("")
           async def create_note() -> SuccessResponse:
               return ok("created").with_data({"id": 42})

           service.listen()

Application layout:
    ┌─────────────────────────────────────────────────────┐
    │  EnvelopeCORSMiddleware (policy, outermost)         │
    │  ┌───────────────────────────────────────────────┐  │
    │  │ registered middleware, in registration order  │  │
    │  │  ┌─────────────────────────────────────────┐  │  │
    │  │  │ unhandled errors → 500 envelope         │  │  │
    │  │  │ exception handlers → error envelopes    │  │  │
    │  │  │ routers from route(prefix)              │  │  │
    │  │  └─────────────────────────────────────────┘  │  │
    │  └───────────────────────────────────────────────┘  │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    CONFIGURED ──listen()──▶ LISTENING ──exit / serve error──▶ TERMINATED
         └──────────bind failure──────────────────────────────▶ TERMINATED
    There is no way back from LISTENING or TERMINATED.
"""

import enum
import logging
import socket
from typing import Any, Callable, List, Optional, Sequence, Tuple

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.routing import APIRouter
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware import Middleware
from starlette.responses import Response

from restkit import __version__
from restkit.config import CORSPolicy, DEFAULT_ADDR, ServiceConfig, Settings
from restkit.context import current_request_id, request_id
from restkit.envelope import ErrorResponse, bad_request, internal
from restkit.exceptions import EnvelopeEncodeError, ListenError, ServiceStateError
from restkit.middleware import (
    AccessLogMiddleware,
    EnvelopeCORSMiddleware,
    PreflightMiddleware,
    RequestIDMiddleware,
    UnhandledErrorMiddleware,
)
from restkit.routing import EnvelopeRoute

logger = logging.getLogger(__name__)

LISTEN_BACKLOG = 2048


class ServiceState(str, enum.Enum):
    CONFIGURED = "configured"
    LISTENING = "listening"
    TERMINATED = "terminated"


def split_address(address: str) -> Tuple[str, int]:
    """
    Split "host:port" into its parts.

    "[::1]:8080" → ("::1", 8080); ":8080" → ("", 8080), all interfaces.
    """
    host, sep, port = address.rpartition(":")
    if not sep:
        raise ValueError(f"address {address!r}: missing port")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        port_number = int(port)
    except ValueError:
        raise ValueError(f"address {address!r}: invalid port {port!r}") from None
    if not 0 <= port_number <= 65535:
        raise ValueError(f"address {address!r}: port out of range")
    return host, port_number


# ══════════════════════════════════════════════════════════════════════════
# Builder
# ══════════════════════════════════════════════════════════════════════════


class ServiceBuilder:
    """
    Draft configuration for a Service.

    Every `with_*` method mutates the draft and returns the builder.
    Middleware is applied in registration order: the first registered
    stage runs outermost (after the CORS policy, which is always first).

    Defaults: bind to 127.0.0.1:8080 with a permissive CORS policy.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger
        self._addr = DEFAULT_ADDR
        self._cors = CORSPolicy.permissive()
        self._middleware: List[Middleware] = []

    @classmethod
    def from_settings(
        cls, settings: Settings, logger: Optional[logging.Logger] = None
    ) -> "ServiceBuilder":
        return cls(logger).with_addr(settings.bind_address).with_cors_policy(
            settings.cors_policy()
        )

    def with_addr(self, addr: str) -> "ServiceBuilder":
        self._addr = addr
        return self

    def with_cors(
        self,
        origins: Sequence[str],
        methods: Sequence[str],
        headers: Sequence[str],
    ) -> "ServiceBuilder":
        """Restrict CORS to an origin allow-list and short-circuit OPTIONS requests."""
        self._cors = CORSPolicy.allow_list(origins, methods, headers)
        return self.use(PreflightMiddleware)

    def with_cors_policy(self, policy: CORSPolicy) -> "ServiceBuilder":
        self._cors = policy
        return self

    def with_tracing(self) -> "ServiceBuilder":
        """Tag every request with an x-request-id."""
        return self.use(RequestIDMiddleware)

    def with_access_log(self) -> "ServiceBuilder":
        return self.use(AccessLogMiddleware)

    def use(self, factory: Callable[..., Any], *args: Any, **kwargs: Any) -> "ServiceBuilder":
        """Register any ASGI middleware factory (`app -> app`)."""
        self._middleware.append(Middleware(factory, *args, **kwargs))
        return self

    def build(self) -> "Service":
        config = ServiceConfig(
            bind_address=self._addr,
            cors=self._cors,
            middleware=tuple(self._middleware),
        )
        return Service(config, logger=self._logger)


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════


def register_exception_handlers(app: FastAPI, log: logging.Logger) -> None:
    """
    Map exceptions to error envelopes.

    Handler hierarchy:
        ErrorResponse           → its own status and public message
        RequestValidationError  → 400 Bad Request
        HTTPException           → its status (unmatched route 404, 405, ...)
        EnvelopeEncodeError     → 500 Internal Server Error
        Exception (fallback)    → 500 Internal Server Error, for errors raised
                                  outside UnhandledErrorMiddleware

    Internal causes are logged here with the request ID and never serialized.
    """

    @app.exception_handler(ErrorResponse)
    async def handle_error_response(request: Request, exc: ErrorResponse) -> Response:
        rid = request_id(request)
        if exc.status_code >= 500:
            log.error("[%s] %s: %s", rid, request.url.path, exc.cause, exc_info=exc)
        else:
            log.info("[%s] %d %s: %s", rid, exc.status_code, request.url.path, exc.cause)
        return exc.render()

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> Response:
        error = bad_request("validation failed: %s", exc.errors()).with_message(
            "invalid request"
        )
        log.info("[%s] %s", request_id(request), error.cause)
        return error.render()

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> Response:
        detail = str(exc.detail)
        response = ErrorResponse(exc.status_code, detail, detail).render()
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(EnvelopeEncodeError)
    async def handle_encode_error(request: Request, exc: EnvelopeEncodeError) -> Response:
        log.error(
            "[%s] Could not encode response for %s: %s",
            request_id(request),
            request.url.path,
            exc.context,
        )
        return internal().with_message("internal server error").render()

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> Response:
        # Only reached for errors raised by middleware outside the catch-all,
        # after tracing has reset the request ID.
        log.error(
            "[%s] Unexpected error: %s",
            current_request_id(),
            str(exc),
            exc_info=exc,
        )
        return internal("unexpected %s", type(exc).__name__).with_message(
            "internal server error"
        ).render()


# ══════════════════════════════════════════════════════════════════════════
# Service
# ══════════════════════════════════════════════════════════════════════════


class Service:
    """
    A configured HTTP service. Run-once: `listen()` may be called a single time.

    Attributes:
        config: the frozen ServiceConfig
        state:  CONFIGURED, LISTENING or TERMINATED
    """

    def __init__(self, config: ServiceConfig, logger: Optional[logging.Logger] = None) -> None:
        self.config = config
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self.state = ServiceState.CONFIGURED
        self._routers: List[APIRouter] = []
        self._app: Optional[FastAPI] = None

    def route(self, prefix: str) -> APIRouter:
        """
        Return a router whose paths are registered under `prefix`.

        Routes must be registered before the application is assembled
        (first access to `app`, or `listen()`).
        """
        if self._app is not None:
            raise ServiceStateError(self.state.value, "register routes after assembly")
        router = APIRouter(prefix=prefix.rstrip("/"), route_class=EnvelopeRoute)
        self._routers.append(router)
        return router

    @property
    def app(self) -> FastAPI:
        """The assembled ASGI application, built on first access."""
        if self._app is None:
            self._app = self._assemble()
        return self._app

    def _assemble(self) -> FastAPI:
        app = FastAPI(
            title="restkit service",
            version=__version__,
            middleware=[
                Middleware(EnvelopeCORSMiddleware, policy=self.config.cors),
                *self.config.middleware,
                Middleware(UnhandledErrorMiddleware, logger=self.logger),
            ],
        )
        register_exception_handlers(app, self.logger)
        for router in self._routers:
            app.include_router(router)
        return app

    def listen(self) -> None:
        """
        Bind the configured address and serve until the server exits.

        Raises:
            ListenError:       the socket could not be bound (fatal, no retry)
            ServiceStateError: the service already listened or terminated
        """
        if self.state is not ServiceState.CONFIGURED:
            raise ServiceStateError(self.state.value, "listen")

        sock = self._bind()
        app = self.app
        self.state = ServiceState.LISTENING
        self.logger.info(
            "starting API service",
            extra={"address": self.config.bind_address},
        )

        server = uvicorn.Server(uvicorn.Config(app, log_config=None, access_log=False))
        try:
            server.run(sockets=[sock])
        finally:
            self.state = ServiceState.TERMINATED
            sock.close()

    def _bind(self) -> socket.socket:
        address = self.config.bind_address
        try:
            host, port = split_address(address)
            family = socket.AF_INET6 if ":" in host else socket.AF_INET
            sock = socket.socket(family, socket.SOCK_STREAM)
        except (ValueError, OSError) as exc:
            self.state = ServiceState.TERMINATED
            raise ListenError(address, str(exc)) from exc

        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((host, port))
            sock.listen(LISTEN_BACKLOG)
        except OSError as exc:
            sock.close()
            self.state = ServiceState.TERMINATED
            raise ListenError(address, str(exc)) from exc
        return sock
