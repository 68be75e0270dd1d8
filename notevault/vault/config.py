"""
Vault Configuration — Validated settings for key derivation and storage.

Reads optional overrides from environment variables:
    NOTEVAULT_KDF_ITERATIONS = <integer>
    NOTEVAULT_CIPHER_BACKEND = aesgcm | chacha20
    NOTEVAULT_SALT_KEY = <storage key for the salt>
    NOTEVAULT_DATA_KEY = <storage key for the envelope>

Security Note:
    Never log password or key material. Only log setting names and counts.
"""
import os
import logging

from pydantic import BaseModel, Field, field_validator, model_validator

from .crypto import KDF_ITERATIONS

logger = logging.getLogger("notevault.vault")

DEFAULT_SALT_KEY = "secureVault:salt"
DEFAULT_DATA_KEY = "secureVault:data"


class VaultConfig(BaseModel):
    """Validated vault configuration."""

    kdf_iterations: int = Field(default=KDF_ITERATIONS, ge=1_000)
    cipher_backend: str = Field(default="aesgcm")
    salt_key: str = Field(default=DEFAULT_SALT_KEY, min_length=1)
    data_key: str = Field(default=DEFAULT_DATA_KEY, min_length=1)

    model_config = {"frozen": True}

    @field_validator("cipher_backend")
    @classmethod
    def validate_cipher(cls, v: str) -> str:
        """Validate cipher backend is supported."""
        v = v.lower()
        if v not in ("aesgcm", "chacha20"):
            raise ValueError(f"Unsupported cipher backend: {v}")
        return v

    @model_validator(mode="after")
    def validate_distinct_keys(self) -> "VaultConfig":
        """Ensure salt and envelope live under different storage keys."""
        if self.salt_key == self.data_key:
            raise ValueError(
                f"salt_key and data_key must differ (both {self.salt_key!r})"
            )
        return self

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig from environment overrides.

        Returns:
            Populated VaultConfig instance.
        """
        overrides: dict[str, str] = {}
        for field in ("kdf_iterations", "cipher_backend", "salt_key", "data_key"):
            value = os.environ.get(f"NOTEVAULT_{field.upper()}")
            if value is not None:
                overrides[field] = value
        logger.debug("Vault config overrides from env: %s", sorted(overrides))
        return cls(**overrides)
