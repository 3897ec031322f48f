"""
Key Manager
Random symmetric keys and their base58 text form.

New keys are always 32 bytes (AES-256). 16-byte keys (AES-128) are still
accepted so links issued by older clients keep decrypting, but they are
never generated.
"""

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from snappwd import base58
from snappwd.errors import InvalidKey


KEY_SIZE_V1 = 16  # AES-128 (legacy)
KEY_SIZE_V2 = 32  # AES-256 (current)
KEY_SIZES = (KEY_SIZE_V1, KEY_SIZE_V2)

VERSION_V1 = 1
VERSION_V2 = 2

_VERSION_BY_SIZE = {
    KEY_SIZE_V1: VERSION_V1,
    KEY_SIZE_V2: VERSION_V2,
}


def generate_key() -> bytes:
    """Generate a fresh 32-byte key from the OS random source."""
    return AESGCM.generate_key(bit_length=KEY_SIZE_V2 * 8)


def key_version(key: bytes) -> int:
    """
    Map a key to the envelope version it produces.

    Raises:
        InvalidKey: If the key is not 16 or 32 bytes.
    """
    try:
        return _VERSION_BY_SIZE[len(key)]
    except KeyError:
        raise InvalidKey(
            f"Key must be {KEY_SIZE_V1} or {KEY_SIZE_V2} bytes, got {len(key)}"
        ) from None


def encode_key(key: bytes) -> str:
    """Encode a raw key as base58."""
    key_version(key)
    return base58.encode(key)


def decode_key(text: str) -> bytes:
    """
    Decode a base58 key string.

    Raises:
        InvalidEncoding: If the text is not base58.
        InvalidKey: If it decodes to anything but 16 or 32 bytes.
    """
    key = base58.decode(text)
    key_version(key)
    return key
