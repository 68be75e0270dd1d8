"""NoteVault — password-protected encrypted notes."""
from .version import __version__
from .exceptions import (
    VaultError,
    EmptyPasswordError,
    InvalidPasswordError,
    UnlockFailedError,
    ValidationError,
    VaultLockedError,
    StorageError,
)
from .vault import VaultSession, VaultState, VaultConfig, Entry

__all__ = [
    "__version__",
    "VaultError",
    "EmptyPasswordError",
    "InvalidPasswordError",
    "UnlockFailedError",
    "ValidationError",
    "VaultLockedError",
    "StorageError",
    "VaultSession",
    "VaultState",
    "VaultConfig",
    "Entry",
]
