"""
Tests for VaultConfig and the storage backends.

Tests cover:
- Config defaults, validation and environment overrides
- MemoryStorage get/set
- FileStorage persistence, atomic replace and error translation
"""
import pytest
from pydantic import ValidationError as ModelValidationError

from notevault.exceptions import StorageError
from notevault.vault.config import VaultConfig
from notevault.vault.storage import FileStorage, MemoryStorage


# --- VaultConfig ---

class TestVaultConfig:
    """Tests for VaultConfig."""

    def test_defaults(self):
        """Test defaults match the browser vault layout."""
        config = VaultConfig()
        assert config.kdf_iterations == 250_000
        assert config.cipher_backend == "aesgcm"
        assert config.salt_key == "secureVault:salt"
        assert config.data_key == "secureVault:data"

    def test_backend_normalized(self):
        """Test backend names are case-insensitive."""
        assert VaultConfig(cipher_backend="ChaCha20").cipher_backend == "chacha20"

    def test_unknown_backend(self):
        """Test unsupported backends are rejected."""
        with pytest.raises(ModelValidationError):
            VaultConfig(cipher_backend="rot13")

    def test_min_iterations(self):
        """Test trivially low round counts are rejected."""
        with pytest.raises(ModelValidationError):
            VaultConfig(kdf_iterations=10)

    def test_same_keys_rejected(self):
        """Test salt and envelope cannot share a storage key."""
        with pytest.raises(ModelValidationError):
            VaultConfig(salt_key="vault", data_key="vault")

    def test_empty_key_rejected(self):
        """Test storage keys cannot be empty."""
        with pytest.raises(ModelValidationError):
            VaultConfig(salt_key="")

    def test_from_env(self, monkeypatch):
        """Test environment overrides are applied."""
        monkeypatch.setenv("NOTEVAULT_KDF_ITERATIONS", "5000")
        monkeypatch.setenv("NOTEVAULT_CIPHER_BACKEND", "chacha20")
        monkeypatch.setenv("NOTEVAULT_SALT_KEY", "notes:salt")
        monkeypatch.setenv("NOTEVAULT_DATA_KEY", "notes:data")
        config = VaultConfig.from_env()
        assert config.kdf_iterations == 5000
        assert config.cipher_backend == "chacha20"
        assert config.salt_key == "notes:salt"
        assert config.data_key == "notes:data"

    def test_from_env_defaults(self, monkeypatch):
        """Test missing env vars fall back to defaults."""
        for name in (
            "NOTEVAULT_KDF_ITERATIONS",
            "NOTEVAULT_CIPHER_BACKEND",
            "NOTEVAULT_SALT_KEY",
            "NOTEVAULT_DATA_KEY",
        ):
            monkeypatch.delenv(name, raising=False)
        assert VaultConfig.from_env() == VaultConfig()

    def test_from_env_invalid(self, monkeypatch):
        """Test invalid env values fail validation."""
        monkeypatch.setenv("NOTEVAULT_KDF_ITERATIONS", "many")
        with pytest.raises(ModelValidationError):
            VaultConfig.from_env()


# --- Storage ---

class TestMemoryStorage:
    """Tests for MemoryStorage."""

    @pytest.mark.asyncio
    async def test_get_missing(self):
        """Test missing keys return None."""
        assert await MemoryStorage().get("nope") is None

    @pytest.mark.asyncio
    async def test_set_get(self):
        """Test values round-trip and overwrite."""
        storage = MemoryStorage()
        await storage.set("k", "v1")
        await storage.set("k", "v2")
        assert await storage.get("k") == "v2"
        assert "k" in storage

    @pytest.mark.asyncio
    async def test_initial_data_copied(self):
        """Test the initial mapping is copied, not shared."""
        seed = {"k": "v"}
        storage = MemoryStorage(seed)
        await storage.set("k", "changed")
        assert seed == {"k": "v"}


class TestFileStorage:
    """Tests for FileStorage."""

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        """Test a missing file behaves as an empty store."""
        storage = FileStorage(tmp_path / "vault.json")
        assert await storage.get("secureVault:data") is None

    @pytest.mark.asyncio
    async def test_persists_across_instances(self, tmp_path):
        """Test values survive a new storage instance."""
        path = tmp_path / "nested" / "vault.json"
        await FileStorage(path).set("a", "1")
        await FileStorage(path).set("b", "2")
        storage = FileStorage(path)
        assert await storage.get("a") == "1"
        assert await storage.get("b") == "2"
        assert storage.path == path

    @pytest.mark.asyncio
    async def test_no_temp_files_left(self, tmp_path):
        """Test the atomic write leaves only the vault file."""
        path = tmp_path / "vault.json"
        await FileStorage(path).set("a", "1")
        assert [p.name for p in tmp_path.iterdir()] == ["vault.json"]

    @pytest.mark.asyncio
    async def test_corrupt_file(self, tmp_path):
        """Test unparseable files raise StorageError."""
        path = tmp_path / "vault.json"
        path.write_text("{not json")
        with pytest.raises(StorageError):
            await FileStorage(path).get("a")

    @pytest.mark.asyncio
    async def test_not_an_object(self, tmp_path):
        """Test a JSON document that is not an object raises StorageError."""
        path = tmp_path / "vault.json"
        path.write_text("[1, 2, 3]")
        with pytest.raises(StorageError):
            await FileStorage(path).get("a")

    @pytest.mark.asyncio
    async def test_non_string_value(self, tmp_path):
        """Test non-string stored values raise StorageError."""
        path = tmp_path / "vault.json"
        path.write_text('{"a": 5}')
        with pytest.raises(StorageError):
            await FileStorage(path).get("a")

    @pytest.mark.asyncio
    async def test_unwritable_location(self, tmp_path):
        """Test write failures raise StorageError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("file, not a directory")
        with pytest.raises(StorageError):
            await FileStorage(blocker / "vault.json").set("a", "1")
