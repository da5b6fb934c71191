"""HTTP/JSON transport to the Hardware Control API."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from dropnshop._constants import USER_AGENT
from dropnshop.config import VaultSettings
from dropnshop.exceptions import VaultTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def call(self, endpoint: str, payload: Mapping[str, Any] | None = None) -> dict[str, Any]:
        ...


class HttpTransport:
    """POSTs JSON requests to ``{hardware_api}/{endpoint}`` with bounded retries.

    Only connection-level failures are retried; an HTTP error status or an
    unparseable body fails immediately.
    """

    def __init__(
        self,
        settings: VaultSettings,
        http_session: aiohttp.ClientSession,
    ) -> None:
        self._base_url = settings.hardware_api.rstrip("/")
        self._max_attempts = max(1, settings.max_retry_attempts)
        self._timeout = aiohttp.ClientTimeout(total=settings.request_timeout)
        self._http = http_session

    async def call(self, endpoint: str, payload: Mapping[str, Any] | None = None) -> dict[str, Any]:
        url = f"{self._base_url}/{endpoint}"
        body = json.dumps(dict(payload or {}), separators=(",", ":"))
        headers = {
            "content-type": "application/json; charset=UTF-8",
            "user-agent": USER_AGENT,
        }

        last_exc: Exception | None = None
        for attempt in range(1, self._max_attempts + 1):
            _logger.debug("POST %s attempt=%d", url, attempt)
            try:
                async with self._http.post(url, data=body, headers=headers, timeout=self._timeout) as resp:
                    try:
                        text = await resp.text()
                    except (UnicodeDecodeError, LookupError) as exc:
                        raise VaultTransportError(
                            f"Undecodable response body from {endpoint}: {exc}",
                            status_code=resp.status,
                            endpoint=endpoint,
                        ) from exc
                    if resp.status != 200:
                        raise VaultTransportError(
                            f"HTTP {resp.status} from {endpoint}: {text[:200]}",
                            status_code=resp.status,
                            endpoint=endpoint,
                        )
                break
            except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                last_exc = exc
                _logger.debug("Request to %s failed (attempt %d/%d): %s", endpoint, attempt, self._max_attempts, exc)
        else:
            raise VaultTransportError(
                f"Request to {endpoint} failed after {self._max_attempts} attempt(s): {last_exc}",
                endpoint=endpoint,
            ) from last_exc

        try:
            result = json.loads(text) if text.strip() else {}
        except json.JSONDecodeError as exc:
            raise VaultTransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                endpoint=endpoint,
            ) from exc

        if not isinstance(result, dict):
            raise VaultTransportError(
                f"Response from {endpoint} is not a JSON object",
                endpoint=endpoint,
            )
        return result
