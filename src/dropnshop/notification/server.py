"""UDP receiver for hardware notifications.

Every datagram is decoded and the resulting event handed to a callback.
Neither a bad datagram nor a failing callback stops the receiver.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from dropnshop.config import NotificationSettings
from dropnshop.models.events import Event
from dropnshop.notification.decoder import decode_notification

_logger = logging.getLogger(__name__)


class _NotificationProtocol(asyncio.DatagramProtocol):
    def __init__(self, on_event: Callable[[Event], None]) -> None:
        self._on_event = on_event

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        _logger.debug("Datagram from %s: %r", addr, data[:200])
        event = decode_notification(data)
        if event is None:
            return
        try:
            self._on_event(event)
        except Exception:
            _logger.exception("Notification handler failed for %r", event)

    def error_received(self, exc: Exception) -> None:
        _logger.warning("Notification socket error: %s", exc)


class NotificationServer:
    """Listens for hardware notification datagrams on the configured port."""

    def __init__(self, settings: NotificationSettings, on_event: Callable[[Event], None]) -> None:
        self._settings = settings
        self._on_event = on_event
        self._transport: asyncio.DatagramTransport | None = None

    async def __aenter__(self) -> NotificationServer:
        await self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        self.close()

    @property
    def is_running(self) -> bool:
        return self._transport is not None

    @property
    def address(self) -> tuple[str, int] | None:
        """Bound ``(host, port)``, ``None`` when not listening."""
        if self._transport is None:
            return None
        sockname = self._transport.get_extra_info("sockname")
        return sockname[0], sockname[1]

    async def start(self) -> None:
        self.close()
        loop = asyncio.get_running_loop()
        transport, _protocol = await loop.create_datagram_endpoint(
            lambda: _NotificationProtocol(self._on_event),
            local_addr=(self._settings.host, self._settings.port),
        )
        self._transport = transport
        _logger.info("Listening for notifications on %s:%d", *self.address)

    def close(self) -> None:
        transport = self._transport
        self._transport = None
        if transport is not None:
            transport.close()
            _logger.debug("Notification receiver closed")
