"""Thin helpers mapping httpx outcomes onto the agent error taxonomy."""

from __future__ import annotations

from typing import Any, Collection, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from services.errors import DecodeError, ProtocolError, TransportError

ModelT = TypeVar("ModelT", bound=BaseModel)

_MAX_DETAIL_CHARS = 200


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def send(
    client: httpx.Client,
    method: str,
    url: str,
    *,
    expected: Collection[int] = (200,),
    error_cls: Type[ProtocolError] = ProtocolError,
    **kwargs: Any,
) -> httpx.Response:
    """Issue one request; no retries.

    Transport failures become ``TransportError`` and any status outside
    ``expected`` becomes ``error_cls`` carrying the status code.
    """
    try:
        response = client.request(method, url, **kwargs)
    except httpx.TimeoutException as exc:
        raise TransportError(f"{method} {url} timed out: {exc}") from exc
    except httpx.HTTPError as exc:
        raise TransportError(f"{method} {url} failed: {exc}") from exc

    if response.status_code not in expected:
        detail = response.text.strip()[:_MAX_DETAIL_CHARS]
        raise error_cls(
            f"{method} {url} returned status code {response.status_code}: "
            f"{detail or 'no detail provided.'}",
            status_code=response.status_code,
        )
    return response


def decode(response: httpx.Response, model: Type[ModelT]) -> ModelT:
    """Validate a JSON body against ``model``."""
    try:
        return model.model_validate_json(response.content)
    except ValidationError as exc:
        raise DecodeError(
            f"unexpected payload from {response.request.method} {response.request.url}: "
            f"{exc.error_count()} validation error(s)"
        ) from exc
