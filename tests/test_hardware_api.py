from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import pytest

from dropnshop._api.lockers import encode_locker_state
from dropnshop._transport import HttpTransport
from dropnshop.config import NotificationSettings, VaultSettings
from dropnshop.exceptions import VaultApiError, VaultTransportError
from dropnshop.hardware import HardwareApi
from dropnshop.models.lockers import LockerMap, LockersNotReady, LockersReady, LockerState

_OK = {"resp": {"success": True, "code": 0, "errMsg": ""}}


class _FakeTransport:
    def __init__(self, responses: Mapping[str, dict[str, Any]] | None = None, *, error: Exception | None = None) -> None:
        self.responses = dict(responses or {})
        self.error = error
        self.requests: list[tuple[str, dict[str, Any] | None]] = []

    async def call(self, endpoint: str, payload: Mapping[str, Any] | None = None) -> dict[str, Any]:
        self.requests.append((endpoint, dict(payload) if payload is not None else None))
        if self.error is not None:
            raise self.error
        return self.responses.get(endpoint, _OK)


def _lock(initialized: bool, state: int) -> dict[str, Any]:
    return {"initialized": initialized, "state": {"state": state}}


@pytest.mark.asyncio
async def test_get_version_and_locker_map() -> None:
    transport = _FakeTransport(
        {
            "getVersion": {**_OK, "version": "2.4.1"},
            "getLockerMap": {**_OK, "numLockers": 12, "lockers": [6, 6]},
        }
    )
    api = HardwareApi(transport)

    assert await api.get_version() == "2.4.1"
    assert await api.get_locker_map() == LockerMap(count=12, mapping=(6, 6))


@pytest.mark.asyncio
async def test_locker_states_are_decoded() -> None:
    transport = _FakeTransport(
        {
            "getLockerStates": {
                **_OK,
                "doorMap": [0, 1, 0],
                "lockerMap": [_lock(True, 1), _lock(True, 0), _lock(True, 0)],
            }
        }
    )

    result = await HardwareApi(transport).get_locker_states()

    assert result == LockersReady(states=(LockerState.LOCKED, LockerState.OPEN, LockerState.CLOSED))
    assert result.unlocked_count == 2
    assert result.state_of(1) is LockerState.LOCKED
    assert result.state_of(4) is None


@pytest.mark.asyncio
async def test_uninitialized_locker_means_not_ready() -> None:
    transport = _FakeTransport(
        {"getLockerStates": {**_OK, "doorMap": [0, 0], "lockerMap": [_lock(True, 1), _lock(False, 0)]}}
    )

    result = await HardwareApi(transport).get_locker_states()

    assert isinstance(result, LockersNotReady)


@pytest.mark.asyncio
async def test_failed_response_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    transport = _FakeTransport({"getLockerStates": {"resp": {"success": False, "code": 7, "errMsg": "busy"}}})

    with caplog.at_level(logging.ERROR, logger="dropnshop._api._common"):
        result = await HardwareApi(transport).get_locker_states()

    assert isinstance(result, LockersNotReady)
    assert "Error during call to `getLockerStates` endpoint, code #7 (busy)" in caplog.text


@pytest.mark.asyncio
async def test_unexpected_payload_raises() -> None:
    transport = _FakeTransport({"getVersion": {"resp": "nope"}})

    with pytest.raises(VaultApiError):
        await HardwareApi(transport).get_version()


@pytest.mark.asyncio
async def test_set_lock_state_endpoints() -> None:
    transport = _FakeTransport()
    api = HardwareApi(transport)

    assert await api.set_lock_state(4, True) is True
    assert await api.set_lock_state(4, False) is True

    assert transport.requests == [("lockLocker", {"lockerNum": 4}), ("unlockLocker", {"lockerNum": 4})]


@pytest.mark.asyncio
async def test_set_lock_state_swallows_transport_errors() -> None:
    transport = _FakeTransport(error=VaultTransportError("down", endpoint="lockLocker"))

    assert await HardwareApi(transport).set_lock_state(4, True) is False


@pytest.mark.asyncio
async def test_peripheral_payloads() -> None:
    transport = _FakeTransport()
    api = HardwareApi(transport)

    await api.buzz(400)
    await api.clear_screen()
    await api.write_screen(2, 5, "abc")
    await api.trigger_duress()
    await api.set_locker_state(3, LockerState.LOCKED)

    assert transport.requests == [
        ("toggleBuzzer", {"durationMillis": 400}),
        ("lcdClearScreen", None),
        ("lcdWriteData", {"row": 2, "col": 5, "text": "abc"}),
        ("triggerUserDuress", None),
        ("setLockerState", {"lockerNum": 3, "state": 1}),
    ]


def test_open_state_cannot_be_encoded() -> None:
    with pytest.raises(ValueError):
        encode_locker_state(LockerState.OPEN)
    assert encode_locker_state(LockerState.CLOSED) == 0


class _UndecodableResponse:
    status = 200

    async def __aenter__(self) -> _UndecodableResponse:
        return self

    async def __aexit__(self, *exc: object) -> None:
        return None

    async def text(self) -> str:
        raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")


class _UndecodableSession:
    def post(self, *_args: object, **_kwargs: object) -> _UndecodableResponse:
        return _UndecodableResponse()


@pytest.mark.asyncio
async def test_undecodable_body_is_a_transport_error() -> None:
    settings = VaultSettings(hardware_api="http://127.0.0.1:8000", notifications=NotificationSettings(port=9999))
    transport = HttpTransport(settings, _UndecodableSession())  # type: ignore[arg-type]

    with pytest.raises(VaultTransportError) as exc_info:
        await transport.call("getVersion")

    assert exc_info.value.endpoint == "getVersion"
