"""dropnshop - Async controller for an unattended drop'n'shop locker vault."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("dropnshop")
except PackageNotFoundError:
    __version__ = "0+local"
from dropnshop.config import NotificationSettings, Timing, VaultSettings
from dropnshop.exceptions import (
    NotificationDecodeError,
    VaultApiError,
    VaultConfigError,
    VaultError,
    VaultTransportError,
)
from dropnshop.hardware import HardwareApi, HardwareControl
from dropnshop.ledger import LockerLedger
from dropnshop.scheduler import DeferredScheduler, DeferredTask
from dropnshop.state import VaultMachine, VaultState
from dropnshop.vault import Vault

__all__ = [
    "__version__",
    "DeferredScheduler",
    "DeferredTask",
    "HardwareApi",
    "HardwareControl",
    "LockerLedger",
    "NotificationDecodeError",
    "NotificationSettings",
    "Timing",
    "Vault",
    "VaultApiError",
    "VaultConfigError",
    "VaultError",
    "VaultMachine",
    "VaultSettings",
    "VaultState",
    "VaultTransportError",
]
