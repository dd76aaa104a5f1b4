"""
restkit — Exception Hierarchy
==============================

What:  Library errors raised while configuring, starting, or writing responses.
How:   Each exception carries a message and an optional context dict.
       Handler-level HTTP errors live in `restkit.envelope.ErrorResponse`,
       which extends the same base so one except clause catches both.
Who:   Raised by the envelope writer, the service builder, and `Service.listen`.

Exception Hierarchy:
    RestKitError (base)
    ├── ListenError          → bind failure, fatal, never retried
    ├── EnvelopeEncodeError  → payload could not be encoded as JSON
    ├── ServiceStateError    → lifecycle misuse (route after build, listen twice)
    └── ErrorResponse        → 400/401/403/404/500 (see restkit.envelope)
"""

from typing import Any, Dict, Optional


class RestKitError(Exception):
    """
    Base exception for all restkit errors.

    Attributes:
        message:  Human-readable description
        context:  Additional debug info (logged, never sent to clients)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ListenError(RestKitError):
    """
    Raised when the listening socket cannot be bound.

    When:    Address already in use, permission denied, malformed address.
    Recovery: None. The service is terminated; there is no fallback port.
    """

    def __init__(
        self,
        address: str,
        reason: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["address"] = address
        super().__init__(message=f"[Service.listen] {reason}", context=ctx)
        self.address = address


class EnvelopeEncodeError(RestKitError):
    """
    Raised when an envelope body cannot be serialized to JSON.

    The body is encoded before any byte is handed to the transport,
    so nothing has been written when this is raised.
    """

    def __init__(
        self,
        message: str = "Response payload is not JSON serializable",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ServiceStateError(RestKitError):
    """Raised when a Service is used out of lifecycle order."""

    def __init__(self, state: str, operation: str):
        super().__init__(
            message=f"cannot {operation} while service is {state}",
            context={"state": state, "operation": operation},
        )
        self.state = state
