"""Inbound hardware notifications: datagram decoding and the UDP receiver."""

from dropnshop.notification.decoder import decode_notification, parse_notification
from dropnshop.notification.server import NotificationServer

__all__ = ["NotificationServer", "decode_notification", "parse_notification"]
