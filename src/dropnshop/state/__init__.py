"""Vault state machine and the effects it requests."""

from dropnshop.state.effects import (
    Buzz,
    CancelDeferred,
    CheckLockers,
    ClearScreen,
    Defer,
    EchoInput,
    Effect,
    SetLock,
    ShowPage,
    VerifyLocked,
)
from dropnshop.state.machine import VaultContext, VaultMachine, VaultState

__all__ = [
    "Buzz",
    "CancelDeferred",
    "CheckLockers",
    "ClearScreen",
    "Defer",
    "EchoInput",
    "Effect",
    "SetLock",
    "ShowPage",
    "VaultContext",
    "VaultMachine",
    "VaultState",
    "VerifyLocked",
]
