"""
Vault Storage — Key-value persistence for the salt and the envelope.

The vault only ever reads and writes two string values; any backend that can
``get``/``set`` text by key can hold a vault.

Security Note:
    Stored values are base64 salt and ciphertext only. Never log them.
"""
import os
import asyncio
import logging
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

import orjson

from ..exceptions import StorageError

logger = logging.getLogger("notevault.vault")


class AbstractStorage(ABC):
    """Durable string store used by ``VaultSession``."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the value stored under ``key``, or None when absent."""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""


class MemoryStorage(AbstractStorage):
    """Process-local store, mostly for tests and ephemeral vaults."""

    def __init__(self, data: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(data or {})

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._data


class FileStorage(AbstractStorage):
    """Keeps all values in a single JSON document on disk.

    Writes go to a temporary file in the same directory which then replaces
    the document, so a crash never leaves a half-written vault behind.
    """

    def __init__(self, path: str | os.PathLike):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, str]:
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            return {}
        except OSError as err:
            raise StorageError(f"Cannot read vault file {self._path}") from err
        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as err:
            raise StorageError(f"Vault file {self._path} is not valid JSON") from err
        if not isinstance(data, dict):
            raise StorageError(f"Vault file {self._path} is not a JSON object")
        return data

    def _write(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(
                dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "wb") as fp:
                    fp.write(orjson.dumps(data))
                    fp.flush()
                    os.fsync(fp.fileno())
                os.replace(tmp, self._path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as err:
            raise StorageError(f"Cannot write vault file {self._path}") from err
        logger.debug("Vault storage write: key=%s path=%s", key, self._path)

    async def get(self, key: str) -> str | None:
        data = await asyncio.to_thread(self._read)
        value = data.get(key)
        if value is not None and not isinstance(value, str):
            raise StorageError(f"Vault file value for {key!r} is not a string")
        return value

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._write, key, value)
