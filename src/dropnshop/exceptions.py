"""Custom exception hierarchy for dropnshop."""

from __future__ import annotations


class VaultError(Exception):
    """Base exception for all dropnshop errors."""


class VaultConfigError(VaultError):
    """Invalid or missing configuration."""


class NotificationDecodeError(VaultError):
    """A hardware notification datagram could not be turned into an event."""


class VaultTransportError(VaultError):
    """HTTP-level failure talking to the Hardware Control API (network, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class VaultApiError(VaultError):
    """Hardware Control API answered but reported a non-success response."""

    def __init__(
        self,
        message: str,
        *,
        code: int = 0,
        endpoint: str = "",
    ) -> None:
        self.code = code
        self.endpoint = endpoint
        super().__init__(message)
