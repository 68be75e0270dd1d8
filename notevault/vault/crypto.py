"""
Vault Crypto Core — Key derivation and envelope encryption/decryption.

- Key derivation: PBKDF2-HMAC-SHA256(password, salt 16B, 250k rounds) → 32B key
- Envelope: base64([nonce 12B][encrypted_payload + tag 16B])

Security Note:
    Never log passwords, keys, plaintext or ciphertext values.
    Nonces are random 96-bit; collision probability negligible under normal usage.
"""
import hmac
import base64
import binascii
import secrets

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305

from ..exceptions import AuthenticationFailure

NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16  # 128-bit tag
KEY_LENGTH = 32  # AES-256
SALT_SIZE = 16
KDF_ITERATIONS = 250_000

_CIPHERS: dict[str, type] = {
    "aesgcm": AESGCM,
    "chacha20": ChaCha20Poly1305,
}


def get_cipher_cls(backend: str = "aesgcm") -> type:
    """Return the AEAD cipher class registered under ``backend``.

    Raises:
        ValueError: If the backend name is unknown.
    """
    try:
        return _CIPHERS[backend.lower()]
    except KeyError:
        raise ValueError(f"Unsupported cipher backend: {backend}") from None


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

class DerivedKey:
    """A 256-bit symmetric key held in a wipeable buffer.

    The raw bytes are reachable only through ``bytes(key)``; ``repr`` and
    ``str`` never show them.
    """

    __slots__ = ("_material", "_wiped")

    def __init__(self, material: bytes):
        if len(material) != KEY_LENGTH:
            raise ValueError(
                f"Derived key must be exactly {KEY_LENGTH} bytes, "
                f"got {len(material)}"
            )
        self._material = bytearray(material)
        self._wiped = False

    def __bytes__(self) -> bytes:
        if self._wiped:
            raise ValueError("Derived key has been wiped")
        return bytes(self._material)

    def __len__(self) -> int:
        return len(self._material)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DerivedKey):
            return NotImplemented
        return hmac.compare_digest(self._material, other._material)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        state = "wiped" if self._wiped else "active"
        return f"<DerivedKey [{state}] bits={len(self._material) * 8}>"

    @property
    def wiped(self) -> bool:
        return self._wiped

    def wipe(self) -> None:
        """Overwrite the key buffer with zeros."""
        # flag first so no reader copies a partly zeroed buffer
        self._wiped = True
        self._material[:] = bytes(len(self._material))


def generate_salt() -> bytes:
    """Return a fresh random 16-byte salt."""
    return secrets.token_bytes(SALT_SIZE)


def derive_key(
    password: str,
    salt: bytes,
    iterations: int = KDF_ITERATIONS,
) -> DerivedKey:
    """Derive a 32-byte encryption key using PBKDF2-HMAC-SHA256.

    Deterministic: the same password and salt always yield the same key.

    Args:
        password: Master password (UTF-8 text).
        salt: Persisted 16-byte vault salt.
        iterations: PBKDF2 round count.

    Returns:
        DerivedKey wrapping the 32-byte key.

    Raises:
        ValueError: If the salt is not exactly 16 bytes.
    """
    if len(salt) != SALT_SIZE:
        raise ValueError(
            f"salt must be exactly {SALT_SIZE} bytes, got {len(salt)}"
        )
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=iterations,
    )
    return DerivedKey(kdf.derive(password.encode("utf-8")))


# ---------------------------------------------------------------------------
# Envelope encryption
# ---------------------------------------------------------------------------

def seal(key: DerivedKey, plaintext: bytes, backend: str = "aesgcm") -> str:
    """Encrypt plaintext into a base64 envelope.

    Format: base64([nonce 12B][encrypted_payload + tag 16B])

    Args:
        key: Session key.
        plaintext: Data to encrypt.
        backend: AEAD construction, ``aesgcm`` or ``chacha20``.

    Returns:
        Envelope as ASCII text.
    """
    cipher = get_cipher_cls(backend)(bytes(key))
    nonce = secrets.token_bytes(NONCE_SIZE)
    ct = cipher.encrypt(nonce, plaintext, None)
    return base64.b64encode(nonce + ct).decode("ascii")


def _decode_envelope(envelope: str) -> bytes:
    try:
        encoded = envelope.encode("ascii")
        raw = base64.b64decode(encoded, validate=True)
    except (UnicodeEncodeError, binascii.Error) as err:
        raise AuthenticationFailure("Envelope is not valid base64") from err
    # Reject non-canonical encodings so every altered character is detected
    if base64.b64encode(raw) != encoded:
        raise AuthenticationFailure("Envelope is not canonical base64")
    _min = NONCE_SIZE + TAG_SIZE
    if len(raw) < _min:
        raise AuthenticationFailure(
            f"Envelope too short: {len(raw)} bytes (minimum {_min})"
        )
    return raw


def open_envelope(
    key: DerivedKey,
    envelope: str,
    backend: str = "aesgcm",
) -> bytes:
    """Decrypt and verify a base64 envelope.

    Args:
        key: Session key.
        envelope: Text produced by ``seal``.
        backend: AEAD construction used to seal it.

    Returns:
        Decrypted plaintext bytes.

    Raises:
        AuthenticationFailure: If the envelope is malformed, or the tag does
            not verify (wrong key, corruption or tampering).
    """
    raw = _decode_envelope(envelope)
    cipher = get_cipher_cls(backend)(bytes(key))
    nonce = raw[:NONCE_SIZE]
    ct = raw[NONCE_SIZE:]
    try:
        return cipher.decrypt(nonce, ct, None)
    except InvalidTag as err:
        raise AuthenticationFailure() from err
