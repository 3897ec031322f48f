"""
Envelope Codec
The versioned binary container every secret travels in.

Layout:
  Versioned (current):  [version:1][nonce:12][ciphertext + tag:16]
  Legacy (pre-version): [nonce:12][ciphertext + tag:16]

The version byte records which key size sealed the envelope
(1 -> 16-byte key, 2 -> 32-byte key). It does not select a cipher: both
versions are AES-GCM, the key length alone picks AES-128 or AES-256.

Legacy envelopes are recognised only because their first byte is not 1 or
2. A legacy nonce that happens to start with 1 or 2 is read as versioned
and fails authentication. Links already issued depend on this exact rule,
so it must not change.
"""

import os
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from snappwd.errors import AuthenticationFailure, MalformedEnvelope
from snappwd.keys import VERSION_V1, VERSION_V2, key_version


NONCE_SIZE = 12  # AES-GCM standard
TAG_SIZE = 16
VERSIONS = (VERSION_V1, VERSION_V2)


@dataclass(frozen=True)
class ParsedEnvelope:
    """Structural view of an envelope. version is None for the legacy shape."""
    version: int | None
    nonce: bytes
    ciphertext: bytes  # includes the trailing GCM tag

    @property
    def is_legacy(self) -> bool:
        return self.version is None


def seal(plaintext: bytes, key: bytes) -> bytes:
    """
    Encrypt plaintext into a versioned envelope.

    A new random nonce is drawn on every call, so sealing the same plaintext
    twice with the same key never produces the same envelope.

    Args:
        plaintext: Bytes to protect. May be empty.
        key: A 16 or 32 byte key.

    Returns:
        version || nonce || ciphertext+tag

    Raises:
        InvalidKey: If the key is not 16 or 32 bytes.
    """
    version = key_version(key)
    nonce = os.urandom(NONCE_SIZE)
    ciphertext = AESGCM(key).encrypt(nonce, plaintext, None)
    return bytes([version]) + nonce + ciphertext


def parse(envelope: bytes) -> ParsedEnvelope:
    """
    Split an envelope into version, nonce and ciphertext without decrypting.

    Raises:
        MalformedEnvelope: If the buffer cannot hold a header and a tag.
    """
    if envelope and envelope[0] in VERSIONS:
        header = 1 + NONCE_SIZE
        version = envelope[0]
        nonce = envelope[1:header]
    else:
        header = NONCE_SIZE
        version = None
        nonce = envelope[:header]

    if len(envelope) < header + TAG_SIZE:
        raise MalformedEnvelope(
            f"Envelope is {len(envelope)} bytes, need at least {header + TAG_SIZE}"
        )

    return ParsedEnvelope(version=version, nonce=nonce, ciphertext=envelope[header:])


def open(envelope: bytes, key: bytes) -> bytes:
    """
    Authenticate and decrypt an envelope, versioned or legacy.

    Decryption is all-or-nothing: either the full plaintext comes back or
    an exception is raised.

    Args:
        envelope: Raw envelope bytes.
        key: The 16 or 32 byte key the envelope was sealed with.

    Returns:
        The plaintext.

    Raises:
        InvalidKey: If the key is not 16 or 32 bytes.
        MalformedEnvelope: If the buffer is too short.
        AuthenticationFailure: If the tag does not verify.
    """
    key_version(key)
    parsed = parse(envelope)
    try:
        return AESGCM(key).decrypt(parsed.nonce, parsed.ciphertext, None)
    except InvalidTag:
        raise AuthenticationFailure("Envelope failed authentication") from None


# Alias for import sites where `open` would shadow the builtin
open_envelope = open


def envelope_nonce(envelope: bytes) -> bytes:
    """Return the nonce embedded in an envelope."""
    return parse(envelope).nonce
