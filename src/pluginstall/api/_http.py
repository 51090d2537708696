from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from ..errors import (
    ApiDeserializationError,
    ApiNotFoundError,
    ApiTransportError,
    UnexpectedStatusError,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

_T = TypeVar("_T")

logger = logging.getLogger(__name__)


def get_json(
    client: httpx.Client,
    url: str,
    response_type: type[_T],
    params: Mapping[str, Any] | None = None,
) -> _T:
    """GET a JSON document and validate it as response_type.

    Raises:
        ApiNotFoundError: The server answered 404.
        UnexpectedStatusError: Any other non-2xx status.
        ApiTransportError: The request never got a response.
        ApiDeserializationError: The body is not JSON or does not match response_type.
    """
    logger.debug("GET %s params=%s", url, dict(params or {}))
    try:
        response = client.get(url, params=params)
    except httpx.HTTPError as e:
        raise ApiTransportError(f"Network error fetching {url}: {e}", url=url) from e

    check_status(response)

    try:
        data = response.json()
    except ValueError as e:
        raise ApiDeserializationError(f"Invalid JSON at {url}: {e}", url=url) from e

    try:
        return TypeAdapter(response_type).validate_python(data)
    except ValidationError as e:
        raise ApiDeserializationError(f"Unexpected response body at {url}: {e}", url=url) from e


def check_status(response: httpx.Response) -> None:
    url = str(response.request.url)
    if response.status_code == httpx.codes.NOT_FOUND:
        raise ApiNotFoundError(f"HTTP 404 fetching {url}", url=url)
    if not response.is_success:
        raise UnexpectedStatusError(response.status_code, url=url)
