"""
restkit — Routing Helper Tests
===============================

What:  Endpoint wrapping used by EnvelopeRoute.
"""

import inspect

import pytest
from starlette.responses import Response

from restkit.envelope import SuccessResponse, ok
from restkit.routing import envelope_endpoint


async def async_endpoint(item_id: int, verbose: bool = False) -> SuccessResponse:
    return ok("async").with_data({"id": item_id, "verbose": verbose})


def sync_endpoint(name: str) -> SuccessResponse:
    return ok("sync").with_data({"name": name})


def dict_endpoint() -> dict:
    return {"raw": True}


class TestEnvelopeEndpoint:
    def test_keeps_parameters(self):
        signature = inspect.signature(envelope_endpoint(async_endpoint))
        assert list(signature.parameters) == ["item_id", "verbose"]
        assert signature.parameters["item_id"].annotation is int

    def test_drops_envelope_return_annotation(self):
        signature = inspect.signature(envelope_endpoint(async_endpoint))
        assert signature.return_annotation is inspect.Signature.empty

    def test_keeps_other_return_annotations(self):
        signature = inspect.signature(envelope_endpoint(dict_endpoint))
        assert signature.return_annotation is dict

    def test_preserves_sync_and_async(self):
        assert inspect.iscoroutinefunction(envelope_endpoint(async_endpoint))
        assert not inspect.iscoroutinefunction(envelope_endpoint(sync_endpoint))

    def test_not_wrapped_twice(self):
        wrapped = envelope_endpoint(sync_endpoint)
        assert envelope_endpoint(wrapped) is wrapped

    def test_keeps_name(self):
        assert envelope_endpoint(sync_endpoint).__name__ == "sync_endpoint"

    @pytest.mark.asyncio
    async def test_async_result_is_rendered(self):
        response = await envelope_endpoint(async_endpoint)(item_id=3)
        assert isinstance(response, Response)
        assert response.status_code == 200
        assert b'"id":3' in response.body

    def test_sync_result_is_rendered(self):
        response = envelope_endpoint(sync_endpoint)(name="pen")
        assert isinstance(response, Response)
        assert b'"name":"pen"' in response.body

    def test_other_results_untouched(self):
        assert envelope_endpoint(dict_endpoint)() == {"raw": True}
