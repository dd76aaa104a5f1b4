"""
restkit — Envelope-aware Routing Helpers
=========================================

What:  Lets FastAPI handlers return a `SuccessResponse` directly, and decodes
       JSON request bodies into pydantic models.
How:   `EnvelopeRoute` wraps each endpoint so a returned envelope is rendered
       into a Starlette response, which FastAPI passes through untouched.
       Routers created by `Service.route()` use it as their `route_class`.
"""

import functools
import inspect
import logging
from typing import Any, Callable, Type, TypeVar

from fastapi.routing import APIRoute
from pydantic import BaseModel, ValidationError
from starlette.requests import Request

from restkit.envelope import SuccessResponse, bad_request

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _render_envelope(result: Any) -> Any:
    if isinstance(result, SuccessResponse):
        return result.render()
    return result


def _returns_envelope(annotation: Any) -> bool:
    return inspect.isclass(annotation) and issubclass(annotation, SuccessResponse)


def envelope_endpoint(endpoint: Callable[..., Any]) -> Callable[..., Any]:
    """
    Wrap an endpoint so a returned `SuccessResponse` is rendered.

    The wrapper keeps the endpoint's parameters for dependency injection.
    A `-> SuccessResponse` return annotation is dropped so FastAPI does not
    build a response model from it.
    """
    if getattr(endpoint, "__envelope_endpoint__", False):
        return endpoint

    signature = inspect.signature(endpoint, eval_str=True)
    if _returns_envelope(signature.return_annotation):
        signature = signature.replace(return_annotation=inspect.Signature.empty)

    if inspect.iscoroutinefunction(endpoint):

        @functools.wraps(endpoint)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            return _render_envelope(await endpoint(*args, **kwargs))

    else:

        @functools.wraps(endpoint)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            return _render_envelope(endpoint(*args, **kwargs))

    wrapper.__signature__ = signature  # type: ignore[attr-defined]
    wrapper.__envelope_endpoint__ = True  # type: ignore[attr-defined]
    return wrapper


class EnvelopeRoute(APIRoute):
    """APIRoute whose endpoints may return a `SuccessResponse`."""

    def __init__(self, path: str, endpoint: Callable[..., Any], **kwargs: Any) -> None:
        super().__init__(path, envelope_endpoint(endpoint), **kwargs)


async def decode(request: Request, model: Type[ModelT]) -> ModelT:
    """
    Parse the JSON request body into `model`.

    Raises:
        ErrorResponse: 400 with public message "invalid request body" when the
                       body is not valid JSON or fails validation. The pydantic
                       error text stays in the internal cause.
    """
    body = await request.body()
    try:
        return model.model_validate_json(body)
    except ValidationError as exc:
        logger.debug("Rejected %s body: %s", model.__name__, exc)
        raise bad_request(
            "decode %s: %s", model.__name__, exc
        ).with_message("invalid request body") from exc
