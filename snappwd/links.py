"""
Link Protocol
Build and parse share URLs that keep the key out of every HTTP request.

Two shapes are supported:
  QUERY:   https://host/path?id=<id>#key=<key>   (default for new links)
  COMPACT: https://host/path#<id>_<key>          (links issued earlier)

In both the key sits in the URL fragment. Browsers never send the fragment
to the server, so the storage service only ever sees the id.

COMPACT joins id and key with '_'. Base58 keys never contain '_', and
COMPACT ids are restricted to [a-zA-Z0-9-] so the split is unambiguous.
"""

import re
from dataclasses import dataclass
from enum import Enum
from urllib.parse import parse_qs, quote, urlencode, urlsplit

from snappwd.errors import InvalidId, MissingId, MissingKey


ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
COMPACT_ID_PATTERN = re.compile(r"^[a-zA-Z0-9-]+$")


class LinkStyle(Enum):
    """How the id and key are placed in a share URL."""
    QUERY = "query"
    COMPACT = "compact"


@dataclass(frozen=True)
class ShareLink:
    """An id and key pair extracted from, or destined for, a share URL."""
    id: str
    key: str
    style: LinkStyle = LinkStyle.QUERY


def validate_id(secret_id: str, style: LinkStyle = LinkStyle.QUERY) -> str:
    """
    Check an id against the safe character set for a link style.

    Raises:
        MissingId: If the id is empty.
        InvalidId: If it contains anything outside the allowed set.
    """
    if not secret_id:
        raise MissingId("Secret id missing from link")
    pattern = COMPACT_ID_PATTERN if style is LinkStyle.COMPACT else ID_PATTERN
    if not pattern.match(secret_id):
        raise InvalidId(f"Invalid secret id: {secret_id!r}")
    return secret_id


def _base_url(origin: str, path: str) -> str:
    path = path or "/"
    if not path.startswith("/"):
        path = "/" + path
    return origin.rstrip("/") + path


def build_link(
    origin: str,
    path: str,
    secret_id: str,
    key: str,
    style: LinkStyle = LinkStyle.QUERY,
) -> str:
    """
    Assemble a share URL.

    Args:
        origin: Scheme and host, e.g. "https://snappwd.example".
        path: Path of the viewer page, e.g. "/".
        secret_id: Identifier issued by the storage service.
        key: Base58 key string.
        style: Link shape.

    Returns:
        The full URL with the key in its fragment.
    """
    validate_id(secret_id, style)
    if not key:
        raise MissingKey("Encryption key missing")

    base = _base_url(origin, path)
    if style is LinkStyle.COMPACT:
        return f"{base}#{secret_id}_{key}"
    return f"{base}?{urlencode({'id': secret_id})}#key={quote(key, safe='')}"


def detect_style(url: str) -> LinkStyle:
    """Guess the link shape: a key= fragment or an id= query means QUERY."""
    parts = urlsplit(url)
    if "key" in parse_qs(parts.fragment, keep_blank_values=True):
        return LinkStyle.QUERY
    if "id" in parse_qs(parts.query, keep_blank_values=True):
        return LinkStyle.QUERY
    return LinkStyle.COMPACT


def parse_link(url: str, style: LinkStyle = None) -> ShareLink:
    """
    Extract the id and key from a share URL.

    Args:
        url: The full share URL.
        style: Expected shape. Detected from the fragment when omitted.

    Returns:
        A ShareLink.

    Raises:
        MissingKey: If there is no key in the fragment.
        MissingId: If there is no id.
        InvalidId: If the id fails the safe character check.
    """
    if style is None:
        style = detect_style(url)

    parts = urlsplit(url)

    if style is LinkStyle.COMPACT:
        fragment = parts.fragment
        if not fragment:
            raise MissingId("Secret id missing from link")
        secret_id, sep, key = fragment.rpartition("_")
        if not sep:
            # A bare fragment with no separator is an id without a key
            raise MissingKey("Encryption key missing from link")
        if not key:
            raise MissingKey("Encryption key missing from link")
        validate_id(secret_id, style)
        return ShareLink(id=secret_id, key=key, style=style)

    key = parse_qs(parts.fragment).get("key", [""])[0]
    secret_id = parse_qs(parts.query).get("id", [""])[0]
    if not key:
        raise MissingKey("Encryption key missing from link")
    validate_id(secret_id, style)
    return ShareLink(id=secret_id, key=key, style=style)
