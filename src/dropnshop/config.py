"""Vault configuration.

Settings come from a YAML file (``settings.yaml`` by default) and can be
overridden with ``DROPNSHOP_*`` environment variables. Validation failures
raise :class:`~dropnshop.exceptions.VaultConfigError`; the vault never starts
with partial settings.
"""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from dropnshop.exceptions import VaultConfigError

DEFAULT_SETTINGS_FILE = "settings.yaml"

PORT_MIN = 1024
PORT_MAX = 49151


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default


def _setting_bool(value: Any, key: str) -> bool:
    """Strict boolean for a settings file value; anything unrecognised is an error."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "y", "on"}:
            return True
        if normalized in {"0", "false", "no", "n", "off"}:
            return False
    raise VaultConfigError(f"Invalid settings: `{key}` must be a boolean, got {value!r}")
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class Timing:
    """Timeouts driving the vault, in seconds."""

    reinitialization: float = 3.0
    greeting: float = 3.0
    dropoff_pending: float = 120.0
    pickup_pending: float = 120.0
    alert_short: float = 3.0
    alert_long: float = 5.0


@dataclasses.dataclass(frozen=True)
class NotificationSettings:
    """UDP listener for hardware notifications.

    Parameters
    ----------
    port : int
        UDP port to listen on.
    listen_remote : bool
        Accept datagrams on every interface instead of loopback only.
        Useful for testing; production hardware always talks over loopback.
    """

    port: int
    listen_remote: bool = False

    @property
    def host(self) -> str:
        return "0.0.0.0" if self.listen_remote else "127.0.0.1"


@dataclasses.dataclass(frozen=True)
class VaultSettings:
    """Vault configuration.

    Parameters
    ----------
    hardware_api : str
        Base URL of the Hardware Control API (e.g. ``"http://127.0.0.1:8000"``).
    notifications : NotificationSettings
        Where hardware notifications are received.
    request_timeout : float
        Total timeout for a single Hardware Control API request, in seconds.
    max_retry_attempts : int
        Attempts per Hardware Control API call before giving up.
    timing : Timing
        Vault timeouts.
    """

    hardware_api: str
    notifications: NotificationSettings
    request_timeout: float = 10.0
    max_retry_attempts: int = 3
    timing: Timing = dataclasses.field(default_factory=Timing)

    def validate(self) -> None:
        """Raise :class:`VaultConfigError` when the settings cannot be used."""
        if not self.hardware_api or not self.hardware_api.strip():
            raise VaultConfigError("Invalid settings: missing required `hardware-api` property")
        if self.notifications is None:
            raise VaultConfigError("Invalid settings: missing required `notifications.*` properties")
        port = self.notifications.port
        if not PORT_MIN <= port <= PORT_MAX:
            raise VaultConfigError(f"Invalid settings: `notifications.port` must be between {PORT_MIN} and {PORT_MAX}")
        if self.max_retry_attempts < 1:
            raise VaultConfigError("Invalid settings: `max-retry-attempts` must be at least 1")
        if self.request_timeout <= 0:
            raise VaultConfigError("Invalid settings: `request-timeout` must be positive")
        for field in dataclasses.fields(self.timing):
            if getattr(self.timing, field.name) <= 0:
                name = field.name.replace("_", "-")
                raise VaultConfigError(f"Invalid settings: `timing.{name}` must be positive")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], **overrides: Any) -> VaultSettings:
        """Build validated settings from a parsed ``settings.yaml`` document.

        Keys use the file's kebab-case spelling (``hardware-api``,
        ``notifications.listen-remote``). Explicit keyword arguments win.
        """
        notifications_raw = data.get("notifications")
        notifications: NotificationSettings | None = None
        if notifications_raw is not None and not isinstance(notifications_raw, Mapping):
            raise VaultConfigError(f"Invalid settings: `notifications` must be a mapping, got {notifications_raw!r}")
        if isinstance(notifications_raw, Mapping):
            try:
                notifications = NotificationSettings(
                    port=int(notifications_raw.get("port", 0)),
                    listen_remote=_setting_bool(notifications_raw.get("listen-remote", False), "notifications.listen-remote"),
                )
            except (TypeError, ValueError) as exc:
                raise VaultConfigError(f"Invalid settings: bad `notifications.port` value: {exc}") from exc

        timing_raw = data.get("timing")
        timing = Timing()
        if timing_raw is not None and not isinstance(timing_raw, Mapping):
            raise VaultConfigError(f"Invalid settings: `timing` must be a mapping, got {timing_raw!r}")
        if isinstance(timing_raw, Mapping):
            known = {f.name for f in dataclasses.fields(Timing)}
            try:
                timing = Timing(
                    **{key.replace("-", "_"): float(value) for key, value in timing_raw.items() if key.replace("-", "_") in known}
                )
            except (TypeError, ValueError) as exc:
                raise VaultConfigError(f"Invalid settings: bad `timing` value: {exc}") from exc

        kwargs: dict[str, Any] = {
            "hardware_api": str(data.get("hardware-api") or ""),
            "notifications": notifications,
            "timing": timing,
        }
        try:
            if "request-timeout" in data:
                kwargs["request_timeout"] = float(data["request-timeout"])
            if "max-retry-attempts" in data:
                kwargs["max_retry_attempts"] = int(data["max-retry-attempts"])
        except (TypeError, ValueError) as exc:
            raise VaultConfigError(f"Invalid settings: {exc}") from exc

        kwargs.update(overrides)
        settings = cls(**kwargs)
        settings.validate()
        return settings

    @classmethod
    def from_yaml(cls, path: str | os.PathLike[str] = DEFAULT_SETTINGS_FILE, **overrides: Any) -> VaultSettings:
        """Load settings from a YAML file, applying environment overrides."""
        file_path = Path(path)
        try:
            text = file_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise VaultConfigError(f"Cannot read settings file {file_path}: {exc}") from exc

        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as exc:
            raise VaultConfigError(f"Failed to parse settings file {file_path}: {exc}") from exc

        if not isinstance(data, Mapping):
            raise VaultConfigError(f"Settings file {file_path} must contain a mapping")

        return cls.from_mapping(_apply_env(dict(data), os.environ), **overrides)

    @classmethod
    def from_env(cls, **overrides: Any) -> VaultSettings:
        """Create settings from ``DROPNSHOP_*`` environment variables only.

        Reads ``DROPNSHOP_HARDWARE_API``, ``DROPNSHOP_NOTIFICATIONS_PORT``,
        ``DROPNSHOP_LISTEN_REMOTE``, ``DROPNSHOP_REQUEST_TIMEOUT`` and
        ``DROPNSHOP_MAX_RETRY_ATTEMPTS``.
        """
        return cls.from_mapping(_apply_env({}, os.environ), **overrides)


def _apply_env(data: dict[str, Any], env: Mapping[str, str]) -> dict[str, Any]:
    """Overlay ``DROPNSHOP_*`` variables on a settings document."""
    hardware_api = env.get("DROPNSHOP_HARDWARE_API")
    if hardware_api is not None:
        data["hardware-api"] = hardware_api

    notifications_raw = data.get("notifications")
    if notifications_raw is None:
        notifications: dict[str, Any] = {}
    elif isinstance(notifications_raw, Mapping):
        notifications = dict(notifications_raw)
    else:
        raise VaultConfigError(f"Invalid settings: `notifications` must be a mapping, got {notifications_raw!r}")
    port = env.get("DROPNSHOP_NOTIFICATIONS_PORT")
    if port is not None:
        notifications["port"] = port
    listen_remote = env.get("DROPNSHOP_LISTEN_REMOTE")
    if listen_remote is not None:
        notifications["listen-remote"] = _env_bool(
            listen_remote, _setting_bool(notifications.get("listen-remote", False), "notifications.listen-remote")
        )
    if notifications:
        data["notifications"] = notifications

    timeout = env.get("DROPNSHOP_REQUEST_TIMEOUT")
    if timeout is not None:
        data["request-timeout"] = timeout
    attempts = env.get("DROPNSHOP_MAX_RETRY_ATTEMPTS")
    if attempts is not None:
        data["max-retry-attempts"] = attempts
    return data
