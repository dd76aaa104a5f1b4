"""
restkit — Identifier Context Unit Tests
========================================

What:  Generation, lookup and the missing-ID sentinel.
"""

import uuid

from starlette.requests import Request

from restkit.context import (
    MISSING_REQUEST_ID,
    current_request_id,
    new_request_id,
    request_id,
    request_id_var,
)


class TestRequestIdLookup:
    def test_untouched_scope_returns_sentinel(self, http_scope):
        assert request_id(http_scope) == MISSING_REQUEST_ID
        assert request_id(http_scope) != ""

    def test_scope_with_empty_state_returns_sentinel(self, http_scope):
        http_scope["state"] = {}
        assert request_id(http_scope) == MISSING_REQUEST_ID

    def test_untouched_request_returns_sentinel(self, http_scope):
        assert request_id(Request(http_scope)) == MISSING_REQUEST_ID

    def test_reads_from_request(self, http_scope):
        child = new_request_id(http_scope)
        request = Request(child)
        assert request_id(request) == request_id(child)
        assert request.state.request_id == request_id(child)


class TestNewRequestId:
    def test_is_uuid4(self, http_scope):
        rid = request_id(new_request_id(http_scope))
        assert uuid.UUID(rid).version == 4
        assert len(rid) == 36

    def test_parent_scope_untouched(self, http_scope):
        http_scope["state"] = {"tenant": "acme"}
        child = new_request_id(http_scope)

        assert "request_id" not in http_scope["state"]
        assert request_id(http_scope) == MISSING_REQUEST_ID
        assert child["state"]["tenant"] == "acme"
        assert child["path"] == http_scope["path"]

    def test_each_call_generates_distinct_id(self, http_scope):
        ids = {request_id(new_request_id(http_scope)) for _ in range(100)}
        assert len(ids) == 100

    def test_child_of_child_gets_new_id_without_touching_parent(self, http_scope):
        first = new_request_id(http_scope)
        first_id = request_id(first)
        second = new_request_id(first)

        assert request_id(first) == first_id
        assert request_id(second) != first_id


class TestCurrentRequestId:
    def test_default_is_sentinel(self):
        assert current_request_id() == MISSING_REQUEST_ID

    def test_reads_context_var(self):
        token = request_id_var.set("abc")
        try:
            assert current_request_id() == "abc"
        finally:
            request_id_var.reset(token)
        assert current_request_id() == MISSING_REQUEST_ID
