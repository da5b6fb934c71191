"""Hardware Control API response models."""

from __future__ import annotations

from pydantic import Field

from dropnshop.models._base import HardwareBaseModel


class BasicResponse(HardwareBaseModel):
    """Outcome block carried by every response."""

    success: bool = False
    code: int = 0
    err_msg: str = ""


class GeneralResponse(HardwareBaseModel):
    resp: BasicResponse = Field(default_factory=BasicResponse)


class VersionResponse(GeneralResponse):
    version: str = ""


class LockerMapResponse(GeneralResponse):
    num_lockers: int = 0
    lockers: list[int] = Field(default_factory=list)
    """Number of lockers in each column."""


class LockMechanismState(HardwareBaseModel):
    state: int = 0


class LockerStateMessage(HardwareBaseModel):
    initialized: bool = False
    state: LockMechanismState = Field(default_factory=LockMechanismState)


class LockerStatesResponse(GeneralResponse):
    door_map: list[int] = Field(default_factory=list)
    """Door sensor code per locker, in locker order."""

    locker_map: list[LockerStateMessage] = Field(default_factory=list)
    """Lock mechanism state per locker, in locker order."""
