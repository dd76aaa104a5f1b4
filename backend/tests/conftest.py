"""
restkit — Test Configuration (conftest.py)
===========================================

What:  Shared pytest fixtures for the test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixtures:
    transport:     Records ASGI messages written by an envelope
    client_for:    Factory for HTTPX AsyncClients talking to an ASGI app in-process
    http_scope:    Minimal ASGI HTTP scope
"""

import json
import os
from typing import Any, Dict, List

import pytest
from httpx import ASGITransport, AsyncClient

# Keep a developer's RESTKIT_* environment out of the tests
for _name in list(os.environ):
    if _name.startswith("RESTKIT_"):
        del os.environ[_name]


class RecordingSend:
    """ASGI `send` callable that keeps every message it receives."""

    def __init__(self) -> None:
        self.messages: List[Dict[str, Any]] = []

    async def __call__(self, message: Dict[str, Any]) -> None:
        self.messages.append(message)

    @property
    def start(self) -> Dict[str, Any]:
        return self.messages[0]

    @property
    def status(self) -> int:
        return self.start["status"]

    @property
    def headers(self) -> Dict[str, str]:
        return {k.decode("latin-1"): v.decode("latin-1") for k, v in self.start["headers"]}

    @property
    def body(self) -> bytes:
        return b"".join(m.get("body", b"") for m in self.messages[1:])

    def json(self) -> Any:
        return json.loads(self.body)


@pytest.fixture
def transport():
    return RecordingSend()


@pytest.fixture
def client_for():
    """
    Usage:
        async with client_for(service.app) as client:
            response = await client.get("/api/items/1")
    """

    def _client(app, raise_app_exceptions: bool = True) -> AsyncClient:
        asgi = ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions)
        return AsyncClient(transport=asgi, base_url="http://test")

    return _client


@pytest.fixture
def http_scope():
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "GET",
        "scheme": "http",
        "path": "/",
        "raw_path": b"/",
        "query_string": b"",
        "root_path": "",
        "headers": [],
        "client": ("127.0.0.1", 50000),
        "server": ("test", 80),
    }
