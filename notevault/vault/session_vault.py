"""
VaultSession — Password-unlocked encrypted entry collection.

Provides the public API for the vault:
- ``unlock(password)`` — derive the key, decrypt and load all entries
- ``add_entry(title, content)`` — append an entry and re-encrypt the vault
- ``delete_entry(entry_id)`` — remove an entry and re-encrypt the vault
- ``lock()`` — wipe the key and the decrypted entries
- ``entries`` — snapshot of the decrypted entries, in insertion order

Every mutation re-encodes and re-seals the whole collection, overwriting the
stored envelope in full. ``unlock``, ``add_entry`` and ``delete_entry`` are
serialized per session, so read-modify-rewrite cycles never interleave.

Security Note:
    Never log passwords, keys, titles or contents. Only log operation names,
    entry ids and counts. The derived key never leaves this object.
"""
import asyncio
import base64
import enum
import logging

from .codec import encode_entries, decode_entries
from .config import VaultConfig
from .crypto import (
    SALT_SIZE,
    DerivedKey,
    derive_key,
    generate_salt,
    seal,
    open_envelope,
)
from .models import Entry
from .storage import AbstractStorage
from ..exceptions import (
    AuthenticationFailure,
    EmptyPasswordError,
    InvalidPasswordError,
    MalformedPayload,
    StorageError,
    UnlockFailedError,
    ValidationError,
    VaultLockedError,
)

logger = logging.getLogger("notevault.vault")


def _is_utf8(text: str) -> bool:
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


class VaultState(enum.Enum):
    LOCKED = "locked"
    UNLOCKING = "unlocking"
    UNLOCKED = "unlocked"


class VaultSession:
    """Encrypted entry vault bound to one storage backend.

    The session starts ``LOCKED``. A successful ``unlock`` keeps the derived
    key and the decrypted entries in memory until ``lock`` is called.
    """

    def __init__(
        self,
        storage: AbstractStorage,
        config: VaultConfig | None = None,
    ):
        self._storage = storage
        self._config = config or VaultConfig()
        self._state = VaultState.LOCKED
        self._key: DerivedKey | None = None
        self._salt: bytes | None = None
        self._entries: list[Entry] = []
        self._mutex = asyncio.Lock()
        # bumped by lock(); in-flight operations compare against it
        self._generation = 0

    def __repr__(self) -> str:
        return (
            f"<VaultSession [{self._state.value}] "
            f"entries={len(self._entries)}>"
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> VaultState:
        return self._state

    @property
    def is_unlocked(self) -> bool:
        return self._state is VaultState.UNLOCKED

    @property
    def config(self) -> VaultConfig:
        return self._config

    @property
    def entries(self) -> tuple[Entry, ...]:
        """Decrypted entries in insertion order (empty while locked)."""
        return tuple(self._entries)

    # ------------------------------------------------------------------
    # Storage helpers
    # ------------------------------------------------------------------

    async def _store_get(self, key: str) -> str | None:
        try:
            return await self._storage.get(key)
        except StorageError:
            raise
        except OSError as err:
            raise StorageError() from err

    async def _store_set(self, key: str, value: str) -> None:
        try:
            await self._storage.set(key, value)
        except StorageError:
            raise
        except OSError as err:
            raise StorageError() from err

    async def _load_salt(self) -> bytes:
        """Return the vault salt, creating and persisting it on first use.

        Raises:
            UnlockFailedError: If the stored salt is unreadable, or ciphertext
                exists without a salt.
        """
        encoded = await self._store_get(self._config.salt_key)
        if encoded is None:
            if await self._store_get(self._config.data_key) is not None:
                # a new salt would orphan the existing ciphertext
                logger.warning("Vault holds ciphertext but no salt; refusing unlock")
                raise UnlockFailedError()
            salt = generate_salt()
            await self._store_set(
                self._config.salt_key, base64.b64encode(salt).decode("ascii"),
            )
            logger.info("Vault salt created")
            return salt
        try:
            salt = base64.b64decode(encoded, validate=True)
        except ValueError as err:
            logger.warning("Stored vault salt is not valid base64")
            raise UnlockFailedError() from err
        if len(salt) != SALT_SIZE:
            logger.warning(
                "Stored vault salt has %d bytes (expected %d)", len(salt), SALT_SIZE,
            )
            raise UnlockFailedError()
        return salt

    async def _persist(
        self,
        key: DerivedKey,
        salt: bytes,
        entries: list[Entry],
    ) -> None:
        """Encode, seal and store the full entry collection.

        Raises:
            StorageError: If the stored salt no longer matches the salt the
                session key was derived from.
        """
        stored_salt = await self._store_get(self._config.salt_key)
        if stored_salt != base64.b64encode(salt).decode("ascii"):
            # an envelope sealed under a stale key could never be opened
            logger.warning("Vault salt changed since unlock; refusing write")
            raise StorageError("Vault salt changed since unlock.")
        plaintext = encode_entries(entries)
        try:
            envelope = await asyncio.to_thread(
                seal, key, plaintext, self._config.cipher_backend,
            )
        except ValueError as err:
            if key.wiped:
                raise VaultLockedError() from err
            raise
        await self._store_set(self._config.data_key, envelope)

    def _require_unlocked(self) -> tuple[DerivedKey, bytes]:
        if (
            self._state is not VaultState.UNLOCKED
            or self._key is None
            or self._salt is None
        ):
            raise VaultLockedError()
        return self._key, self._salt

    def _wipe(self) -> None:
        if self._key is not None:
            self._key.wipe()
        self._key = None
        self._salt = None
        self._entries = []
        self._state = VaultState.LOCKED

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def unlock(self, password: str) -> tuple[Entry, ...]:
        """Unlock the vault with the master password.

        An absent envelope is a fresh, empty vault. Unlocking an already
        unlocked session discards the current key first.

        Args:
            password: Master password.

        Returns:
            The decrypted entries.

        Raises:
            EmptyPasswordError: If the password is empty (no state change).
            InvalidPasswordError: If the password is not encodable as UTF-8
                (no state change).
            UnlockFailedError: If the vault cannot be decrypted or decoded.
            StorageError: If the storage backend fails.
        """
        if not password:
            raise EmptyPasswordError()
        if not _is_utf8(password):
            raise InvalidPasswordError()

        async with self._mutex:
            if self._state is VaultState.UNLOCKED:
                logger.debug("Vault re-unlock: discarding current key")
                self._wipe()
            generation = self._generation
            self._state = VaultState.UNLOCKING
            key: DerivedKey | None = None
            try:
                salt = await self._load_salt()
                key = await asyncio.to_thread(
                    derive_key, password, salt, self._config.kdf_iterations,
                )
                envelope = await self._store_get(self._config.data_key)
                if envelope is None:
                    entries: list[Entry] = []
                else:
                    try:
                        plaintext = await asyncio.to_thread(
                            open_envelope, key, envelope, self._config.cipher_backend,
                        )
                        entries = decode_entries(plaintext)
                    except (AuthenticationFailure, MalformedPayload) as err:
                        logger.warning(
                            "Vault unlock failed: %s", type(err).__name__,
                        )
                        raise UnlockFailedError() from err
                if generation != self._generation:
                    logger.debug("Vault locked during unlock")
                    raise VaultLockedError()
            except BaseException:
                if key is not None:
                    key.wipe()
                self._state = VaultState.LOCKED
                raise

            self._key = key
            self._salt = salt
            self._entries = entries
            self._state = VaultState.UNLOCKED

        logger.info("Vault unlocked: %d entry(ies)", len(entries))
        return self.entries

    async def add_entry(self, title: str, content: str) -> Entry:
        """Append a new entry and re-encrypt the vault.

        Surrounding whitespace is stripped from title and content.

        Args:
            title: Entry title.
            content: Entry content.

        Returns:
            The stored entry, with its generated id.

        Raises:
            VaultLockedError: If the vault is not unlocked.
            ValidationError: If title or content is empty after stripping, or
                not encodable as UTF-8.
            StorageError: If the storage backend fails.
        """
        async with self._mutex:
            key, salt = self._require_unlocked()
            title = (title or "").strip()
            content = (content or "").strip()
            if not title or not content:
                raise ValidationError()
            if not (_is_utf8(title) and _is_utf8(content)):
                raise ValidationError(
                    "Title and content contain unsupported characters."
                )

            entry = Entry.create(title=title, content=content)
            entries = [*self._entries, entry]
            generation = self._generation
            await self._persist(key, salt, entries)
            if generation == self._generation:
                self._entries = entries

        logger.debug("Vault add: id=%s total=%d", entry.id, len(entries))
        return entry

    async def delete_entry(self, entry_id: str) -> bool:
        """Remove an entry by id and re-encrypt the vault.

        Unknown ids are a no-op and leave the stored envelope untouched.

        Args:
            entry_id: Identifier of the entry to remove.

        Returns:
            True if an entry was removed, False otherwise.

        Raises:
            VaultLockedError: If the vault is not unlocked.
            StorageError: If the storage backend fails.
        """
        async with self._mutex:
            key, salt = self._require_unlocked()
            entries = [e for e in self._entries if e.id != entry_id]
            if len(entries) == len(self._entries):
                logger.debug("Vault delete: id=%s not found", entry_id)
                return False
            generation = self._generation
            await self._persist(key, salt, entries)
            if generation == self._generation:
                self._entries = entries

        logger.debug("Vault delete: id=%s total=%d", entry_id, len(entries))
        return True

    def lock(self) -> None:
        """Wipe the derived key and decrypted entries. No storage writes."""
        self._generation += 1
        was_unlocked = self._state is VaultState.UNLOCKED
        self._wipe()
        if was_unlocked:
            logger.info("Vault locked")
