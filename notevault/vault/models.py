"""Vault entry model."""
import uuid

from pydantic import BaseModel, ConfigDict


class Entry(BaseModel):
    """A single title/content record held inside the decrypted vault.

    Field order (id, title, content) is the serialized field order.
    """

    model_config = ConfigDict(frozen=True, strict=True, extra="ignore")

    id: str
    title: str
    content: str

    @classmethod
    def create(cls, title: str, content: str) -> "Entry":
        """Build a new entry under a fresh random identifier."""
        return cls(id=str(uuid.uuid4()), title=title, content=content)

    def __repr__(self) -> str:
        # title and content are secret material
        return f"Entry(id={self.id!r})"

    __str__ = __repr__
