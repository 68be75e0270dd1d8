"""Vault — Password-derived encrypted storage of title/content entries.

Security Note (Threat Model):
    Decrypted entries and the derived key live in process memory while the
    session is unlocked. A memory dump of the process could expose them.
    This is an accepted limitation; ``lock()`` wipes both.
"""

from .session_vault import VaultSession, VaultState
from .config import VaultConfig
from .models import Entry
from .storage import AbstractStorage, MemoryStorage, FileStorage
from .crypto import DerivedKey, derive_key, generate_salt, seal, open_envelope
from .codec import encode_entries, decode_entries

__all__ = [
    "VaultSession",
    "VaultState",
    "VaultConfig",
    "Entry",
    "AbstractStorage",
    "MemoryStorage",
    "FileStorage",
    "DerivedKey",
    "derive_key",
    "generate_salt",
    "seal",
    "open_envelope",
    "encode_entries",
    "decode_entries",
]
