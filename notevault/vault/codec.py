"""
Vault Codec — Entry collection serialization.

The plaintext payload is a UTF-8 JSON array of ``{"id", "title", "content"}``
objects in insertion order, the same layout the browser vault writes.

Security Note:
    Never log encoded or decoded payloads.
"""
from collections.abc import Iterable
from typing import Any

import orjson
from pydantic import ValidationError as ModelValidationError

from .models import Entry
from ..exceptions import MalformedPayload


def encode_entries(entries: Iterable[Entry]) -> bytes:
    """Serialize entries to the plaintext payload.

    Args:
        entries: Ordered entries.

    Returns:
        orjson-encoded bytes.

    Raises:
        MalformedPayload: If an entry field is not encodable as UTF-8.
    """
    try:
        return orjson.dumps(
            [
                {"id": entry.id, "title": entry.title, "content": entry.content}
                for entry in entries
            ]
        )
    except orjson.JSONEncodeError as err:
        raise MalformedPayload("Vault entries are not valid UTF-8") from err


def decode_entries(data: bytes) -> list[Entry]:
    """Deserialize the plaintext payload back to entries.

    Args:
        data: Bytes produced by ``encode_entries``.

    Returns:
        Entries in stored order.

    Raises:
        MalformedPayload: If the payload is not a JSON array of entry objects.
    """
    try:
        parsed: Any = orjson.loads(data)
    except orjson.JSONDecodeError as err:
        raise MalformedPayload("Vault payload is not valid JSON") from err
    if not isinstance(parsed, list):
        raise MalformedPayload("Vault payload is not an entry list")
    try:
        return [Entry.model_validate(item) for item in parsed]
    except ModelValidationError as err:
        raise MalformedPayload(
            f"Vault payload holds {err.error_count()} invalid entry field(s)"
        ) from err
