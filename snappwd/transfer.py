"""
Transfer Encoding
Standard base64 for carrying envelopes inside JSON bodies.

Large buffers are processed in fixed-size chunks. Chunk sizes are aligned
to base64 quanta (3 input bytes, 4 output characters) so the chunked
output is byte-identical to a single-pass encoding.
"""

import base64
import binascii

from snappwd.errors import InvalidEncoding


ENCODE_CHUNK = 3 * 10922  # 32766 bytes, just under 32 KiB
DECODE_CHUNK = 4 * 8192   # 32768 characters


def to_text(data: bytes) -> str:
    """Encode bytes as padded standard base64."""
    view = memoryview(data)
    parts = []
    for start in range(0, len(view), ENCODE_CHUNK):
        parts.append(base64.b64encode(view[start:start + ENCODE_CHUNK]).decode("ascii"))
    return "".join(parts)


def from_text(text: str) -> bytes:
    """
    Decode padded standard base64.

    Raises:
        InvalidEncoding: If the text is not valid base64.
    """
    text = text.strip()
    if len(text) % 4:
        raise InvalidEncoding("Base64 text length is not a multiple of 4")

    parts = []
    try:
        for start in range(0, len(text), DECODE_CHUNK):
            parts.append(base64.b64decode(text[start:start + DECODE_CHUNK], validate=True))
    except (binascii.Error, ValueError) as e:
        raise InvalidEncoding(f"Invalid base64: {e}") from None
    return b"".join(parts)
