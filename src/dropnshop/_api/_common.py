"""Shared helpers for Hardware Control API endpoint modules.

It is internal to dropnshop and may change at any time.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import ValidationError

from dropnshop._transport import Transport
from dropnshop.exceptions import VaultApiError
from dropnshop.models.responses import BasicResponse, GeneralResponse

_logger = logging.getLogger(__name__)

TResponse = TypeVar("TResponse", bound=GeneralResponse)


def validate(endpoint: str, response: BasicResponse) -> bool:
    """Log a non-success response. The call is then treated as having had no effect."""
    if not response.success:
        _logger.error(
            "Error during call to `%s` endpoint, code #%d (%s)",
            endpoint,
            response.code,
            response.err_msg,
        )
    return response.success


async def call_endpoint(
    transport: Transport,
    endpoint: str,
    model: type[TResponse],
    payload: Mapping[str, Any] | None = None,
) -> TResponse:
    """Call *endpoint*, parse its body as *model* and log a non-success outcome."""
    raw = await transport.call(endpoint, payload)
    try:
        response = model.model_validate(raw)
    except ValidationError as exc:
        raise VaultApiError(f"{endpoint} returned an unexpected payload: {exc}", endpoint=endpoint) from exc
    validate(endpoint, response.resp)
    return response
