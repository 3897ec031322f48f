"""
snappwd — zero-knowledge share links
Client-side encryption for short-lived secrets shared by URL.

The storage service only ever holds an opaque ciphertext blob keyed by an
id. The key travels in the URL fragment, which browsers never send to a
server, so the service cannot decrypt what it stores.

Layers:
1. Envelope — AES-GCM with a fresh nonce, versioned binary format
2. Keys     — random 32-byte keys, base58 for sharing
3. Links    — id in the query, key in the fragment

Usage:
    from snappwd import Sharer, Config
    sharer = Sharer.from_config(Config.from_env())
    url = sharer.share_text("the launch code is 0000")
    secret = sharer.reveal_url(url)
"""

from snappwd.base58 import is_valid_key
from snappwd.client import StorageClient
from snappwd.config import Config
from snappwd.envelope import ParsedEnvelope, open_envelope, seal
from snappwd.errors import (
    AuthenticationFailure,
    InvalidEncoding,
    InvalidId,
    InvalidKey,
    InvalidTransition,
    LinkError,
    MalformedEnvelope,
    MissingId,
    MissingKey,
    NetworkFailure,
    NotFound,
    SecretUnavailable,
    SnapPwdError,
    StorageError,
)
from snappwd.flow import ShareFlow, ShareState
from snappwd.keys import decode_key, encode_key, generate_key
from snappwd.links import LinkStyle, ShareLink, build_link, parse_link
from snappwd.models import EXPIRATION_OPTIONS, FileMetadata
from snappwd.share import RevealedSecret, Sharer
from snappwd.transfer import from_text, to_text

__version__ = "0.1.0"
__all__ = [
    "Sharer",
    "RevealedSecret",
    "StorageClient",
    "Config",
    "seal",
    "open_envelope",
    "ParsedEnvelope",
    "generate_key",
    "encode_key",
    "decode_key",
    "is_valid_key",
    "to_text",
    "from_text",
    "build_link",
    "parse_link",
    "LinkStyle",
    "ShareLink",
    "ShareFlow",
    "ShareState",
    "FileMetadata",
    "EXPIRATION_OPTIONS",
    "SnapPwdError",
    "InvalidEncoding",
    "InvalidKey",
    "MalformedEnvelope",
    "AuthenticationFailure",
    "LinkError",
    "MissingKey",
    "MissingId",
    "InvalidId",
    "StorageError",
    "NotFound",
    "NetworkFailure",
    "SecretUnavailable",
    "InvalidTransition",
]
