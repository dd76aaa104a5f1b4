"""
restkit — CORS Policy Middleware
=================================

What:  Starlette's CORSMiddleware configured from a `CORSPolicy`, answering
       preflight probes with the 204 no-content envelope.
How:   Origin/method/header matching is Starlette's. Only the preflight
       answer is replaced: an allowed probe keeps the policy's
       `access-control-*` headers, a rejected probe gets none.
When:  Always the outermost layer of a Service, so CORS headers are present
       even on responses produced by an inner short-circuit.
"""

import logging

from starlette.datastructures import Headers
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from restkit.config import CORSPolicy
from restkit.envelope import no_content

logger = logging.getLogger(__name__)


class EnvelopeCORSMiddleware(CORSMiddleware):
    def __init__(self, app: ASGIApp, policy: CORSPolicy) -> None:
        super().__init__(
            app,
            allow_origins=list(policy.allow_origins),
            allow_methods=list(policy.allow_methods),
            allow_headers=list(policy.allow_headers),
            allow_credentials=policy.allow_credentials,
            expose_headers=list(policy.expose_headers),
        )
        self.policy = policy

    def preflight_response(self, request_headers: Headers) -> Response:
        checked = super().preflight_response(request_headers=request_headers)
        response = no_content().render()

        if checked.status_code >= 400:
            logger.info(
                "Rejected CORS preflight from origin %s: %s",
                request_headers.get("origin", ""),
                checked.body.decode("utf-8", "replace"),
            )
            return response

        for key, value in checked.headers.items():
            if key.startswith("access-control-") or key == "vary":
                response.headers[key] = value
        return response
