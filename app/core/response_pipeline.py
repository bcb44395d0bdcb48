"""
Response post-processing pipeline for protected routes

Dependencies register transforms on the request; PipelineRoute applies them,
in registration order, to the JSON payload produced by the endpoint. The body
is decoded and re-rendered once per request no matter how many transforms
were registered.
"""

import json
from typing import Any, Callable, List

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
import structlog

from app.core.errors import ErrorCode, INTERNAL_SECURITY_MESSAGE, access_denied_body

logger = structlog.get_logger(__name__)

ResponseTransform = Callable[[Any], Any]

_TRANSFORMS_ATTR = "response_transforms"

# Recomputed by JSONResponse when rendering
_DROPPED_HEADERS = {"content-length", "content-type"}


def add_response_transform(request: Request, transform: ResponseTransform) -> None:
    transforms = getattr(request.state, _TRANSFORMS_ATTR, None)
    if transforms is None:
        transforms = []
        setattr(request.state, _TRANSFORMS_ATTR, transforms)
    transforms.append(transform)


def get_response_transforms(request: Request) -> List[ResponseTransform]:
    return list(getattr(request.state, _TRANSFORMS_ATTR, None) or [])


def apply_transforms(payload: Any, transforms: List[ResponseTransform]) -> Any:
    for transform in transforms:
        payload = transform(payload)
    return payload


def is_json_response(response: Response) -> bool:
    """Judged by content type; FastAPI may render response models into a plain Response"""
    content_type = response.headers.get("content-type") or response.media_type or ""
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def _internal_error() -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content=access_denied_body(INTERNAL_SECURITY_MESSAGE, ErrorCode.INTERNAL_SECURITY_ERROR),
    )


class PipelineRoute(APIRoute):
    """
    APIRoute that runs registered transforms over the endpoint's JSON output.

    A response that cannot be transformed (streamed or not JSON) is replaced
    by a generic 500 rather than sent unprocessed.
    """

    def get_route_handler(self) -> Callable:
        original_route_handler = super().get_route_handler()

        async def pipeline_route_handler(request: Request) -> Response:
            response = await original_route_handler(request)

            transforms = get_response_transforms(request)
            if not transforms:
                return response

            body = getattr(response, "body", None)
            if body is not None and not body:
                return response

            if body is None or not is_json_response(response):
                logger.error(
                    f"Cannot apply response transforms to {type(response).__name__} "
                    f"for {request.method} {request.url.path}"
                )
                return _internal_error()

            try:
                payload = apply_transforms(json.loads(body), transforms)
            except Exception:
                logger.exception(f"Response transform failed for {request.method} {request.url.path}")
                return _internal_error()

            headers = {
                key: value
                for key, value in response.headers.items()
                if key.lower() not in _DROPPED_HEADERS
            }
            return JSONResponse(
                content=payload,
                status_code=response.status_code,
                headers=headers,
                background=response.background,
            )

        return pipeline_route_handler
