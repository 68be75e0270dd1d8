"""
NoteVault exceptions.

Every error raised across the package boundary derives from ``VaultError``
and carries a single human-readable ``message`` suitable for display.

Security Note:
    Messages never mention which of "wrong password" or "corrupted store"
    caused an unlock failure; an AEAD tag failure cannot tell them apart.
"""


class VaultError(Exception):
    """Base class for all vault errors."""

    default_message = "Vault operation failed."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class EmptyPasswordError(VaultError):
    """Unlock was requested with an empty master password."""

    default_message = "Please enter your master password."


class UnlockFailedError(VaultError):
    """Stored vault could not be decrypted or decoded."""

    default_message = "Invalid password or corrupted vault."


class ValidationError(VaultError):
    """An entry was submitted with an empty title or content."""

    default_message = "Both title and content are required."


class VaultLockedError(VaultError):
    """A mutation was requested while the vault is not unlocked."""

    default_message = "Vault is locked."


class StorageError(VaultError):
    """The persistence layer failed to read or write a value."""

    default_message = "Vault storage is unavailable."


class AuthenticationFailure(VaultError):
    """Envelope is malformed or its integrity tag does not verify."""

    default_message = "Envelope authentication failed."


class MalformedPayload(VaultError):
    """Decrypted payload is not a valid encoded entry collection."""

    default_message = "Vault payload is malformed."


class InvalidPasswordError(VaultError):
    """Master password cannot be encoded as UTF-8."""

    default_message = "Master password contains unsupported characters."
