"""
Base58 Codec
Bitcoin-alphabet base58 for short, copy-paste friendly key strings.

The alphabet drops 0, O, I and l so a key read aloud or retyped from a
screen cannot be confused. Leading zero bytes are carried as leading '1'
characters, so every byte string round-trips exactly, including b"".
"""

from snappwd.errors import InvalidEncoding


ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_INDEX = {char: value for value, char in enumerate(ALPHABET)}

# Decoded sizes accepted as keys (AES-128 legacy, AES-256 current)
VALID_KEY_SIZES = (16, 32)


def encode(data: bytes) -> str:
    """
    Encode bytes as base58.

    Args:
        data: Any byte string.

    Returns:
        The base58 text. Empty input gives an empty string.
    """
    zeros = len(data) - len(data.lstrip(b"\x00"))

    num = int.from_bytes(data, "big")
    digits = []
    while num > 0:
        num, rem = divmod(num, 58)
        digits.append(ALPHABET[rem])

    return ALPHABET[0] * zeros + "".join(reversed(digits))


def decode(text: str) -> bytes:
    """
    Decode base58 text back to bytes.

    Args:
        text: A base58 string.

    Returns:
        The decoded bytes.

    Raises:
        InvalidEncoding: If any character is outside the alphabet.
    """
    num = 0
    for char in text:
        value = _INDEX.get(char)
        if value is None:
            raise InvalidEncoding(f"Invalid base58 character: {char!r}")
        num = num * 58 + value

    zeros = len(text) - len(text.lstrip(ALPHABET[0]))
    body = num.to_bytes((num.bit_length() + 7) // 8, "big")
    return b"\x00" * zeros + body


def is_valid_key(text: str) -> bool:
    """Check that text is base58 and decodes to a 16 or 32 byte key."""
    if not text or any(char not in _INDEX for char in text):
        return False
    return len(decode(text)) in VALID_KEY_SIZES
