"""Turn hardware notification datagrams into vault events."""

from __future__ import annotations

import logging
import re

from pydantic import ValidationError

from dropnshop.exceptions import NotificationDecodeError
from dropnshop.models.events import DOOR_EVENT_TYPES, Event, LockerOffset, key_event_from_code
from dropnshop.models.notification import Notification

_logger = logging.getLogger(__name__)

KEY_TYPE = "key"

_INTEGER_PATTERN = re.compile(r"[0-9]+")


def _require(notification: Notification, key: str) -> str:
    value = notification.get(key)
    if value is None:
        raise NotificationDecodeError(f"Notification '{notification.type}' is missing '{key}'")
    return value


def _require_int(notification: Notification, key: str) -> int:
    raw = _require(notification, key)
    if _INTEGER_PATTERN.fullmatch(raw) is None:
        raise NotificationDecodeError(f"Notification '{notification.type}' has non-integer '{key}': {raw!r}")
    return int(raw)


def parse_notification(data: bytes) -> Event:
    """Decode one datagram.

    Raises :class:`NotificationDecodeError` for malformed JSON, an unknown
    ``type``, a missing key or a malformed value.
    """
    try:
        notification = Notification.model_validate_json(data)
    except ValidationError as exc:
        raise NotificationDecodeError(f"Malformed notification: {exc.error_count()} validation error(s)") from exc

    if not notification.type or not notification.values:
        raise NotificationDecodeError("Notification has no type or no values")

    if notification.type == KEY_TYPE:
        code = _require_int(notification, "value")
        try:
            return key_event_from_code(code)
        except ValueError as exc:
            raise NotificationDecodeError(str(exc)) from exc

    door_type = DOOR_EVENT_TYPES.get(notification.type)
    if door_type is None:
        raise NotificationDecodeError(f"Unknown notification type: {notification.type!r}")

    locker_id = _require_int(notification, "locker")
    raw_offset = _require(notification, "offset")
    try:
        offset = LockerOffset.parse(raw_offset)
        return door_type(locker_id=locker_id, offset=offset)
    except ValueError as exc:
        # pydantic's ValidationError is a ValueError too (e.g. locker id 0).
        raise NotificationDecodeError(f"Invalid door notification: {exc}") from exc


def decode_notification(data: bytes) -> Event | None:
    """Like :func:`parse_notification`, but logs and drops undecodable datagrams."""
    try:
        event = parse_notification(data)
    except NotificationDecodeError as exc:
        _logger.error("Dropping notification %r: %s", data[:200], exc)
        return None
    _logger.debug("Decoded notification into %r", event)
    return event
