"""
Sharer — create and reveal zero-knowledge share links.

Create path:
1. Generate a fresh 32-byte key
2. Seal the plaintext into a versioned envelope
3. Base64 the envelope and store it, receiving an id
4. Put the id and base58 key into a link, key in the fragment

Reveal path:
1. Parse the link and pre-flight the key (no network yet)
2. Fetch the envelope by id, trying text secrets first, then files
3. Authenticate and decrypt with the key from the fragment

The recipient only ever sees one failure message on the reveal path, so a
probe cannot tell a missing secret from a wrong key.
"""

import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path

from snappwd import envelope, transfer
from snappwd.base58 import is_valid_key
from snappwd.client import StorageClient
from snappwd.config import Config
from snappwd.errors import (
    AuthenticationFailure,
    InvalidEncoding,
    InvalidKey,
    MalformedEnvelope,
    NetworkFailure,
    NotFound,
    SecretUnavailable,
    StorageError,
)
from snappwd.flow import ShareFlow, ShareState
from snappwd.keys import decode_key, encode_key, generate_key
from snappwd.links import LinkStyle, ShareLink, build_link, parse_link
from snappwd.models import DEFAULT_EXPIRATION, FileMetadata

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Failures that must look identical to the recipient
_MASKED_ERRORS = (
    NotFound,
    AuthenticationFailure,
    MalformedEnvelope,
    InvalidKey,
    InvalidEncoding,
    StorageError,
)


@dataclass
class RevealedSecret:
    """Decrypted content: either text, or file bytes with a name and type."""
    text: str = None
    data: bytes = None
    filename: str = None
    content_type: str = None

    @property
    def is_file(self) -> bool:
        return self.data is not None

    def save(self, directory: str | Path) -> Path:
        """Write a revealed file into directory, keeping only its base name."""
        if not self.is_file:
            raise ValueError("Only file secrets can be saved")
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        name = Path(self.filename or "secret").name or "secret"
        target = directory / name
        target.write_bytes(self.data)
        return target


class Sharer:
    """
    Drives the create and reveal paths against a storage service.

    Args:
        client: StorageClient for the blob store.
        origin: Scheme and host used in generated links.
        path: Viewer page path used in generated links.
        style: Link shape for new links.
        expiration: Default lifetime in seconds.
    """

    def __init__(
        self,
        client: StorageClient,
        origin: str,
        path: str = "/",
        style: LinkStyle = LinkStyle.QUERY,
        expiration: int = DEFAULT_EXPIRATION,
    ):
        self.client = client
        self.origin = origin
        self.path = path
        self.style = style
        self.expiration = expiration
        self.flow = ShareFlow()
        self._pending = None

    @classmethod
    def from_config(cls, config: Config) -> "Sharer":
        client = StorageClient(config.api_url, timeout=config.timeout)
        return cls(
            client,
            origin=config.origin,
            path=config.path,
            style=config.link_style,
            expiration=config.expiration,
        )

    def _begin(self, state: ShareState):
        if self.flow.state is not ShareState.IDLE:
            self.flow.reset()
        self.flow.advance(state)

    # --- create path -------------------------------------------------------

    def _create(self, store) -> str:
        self._begin(ShareState.ENCRYPTING)
        try:
            key = generate_key()
            secret_id = store(key)
            link = build_link(self.origin, self.path, secret_id, encode_key(key), self.style)
        except Exception as e:
            self.flow.fail(str(e))
            raise
        self.flow.advance(ShareState.CREATED)
        return link

    def share_text(self, text: str, expiration: int = None) -> str:
        """
        Encrypt text and store it.

        Args:
            text: The secret. Must not be empty.
            expiration: Lifetime in seconds. Defaults to the sharer's.

        Returns:
            The share URL.
        """
        if not text:
            raise ValueError("Please enter some text")
        if expiration is None:
            expiration = self.expiration

        def store(key: bytes) -> str:
            sealed = envelope.seal(text.encode("utf-8"), key)
            return self.client.store_secret(transfer.to_text(sealed), expiration)

        return self._create(store)

    def share_file(
        self,
        data: bytes,
        filename: str,
        content_type: str = None,
        expiration: int = None,
    ) -> str:
        """
        Encrypt file contents and store them with their name and type.

        The metadata iv is copied from the envelope nonce. The envelope stays
        the one authoritative source of the nonce.

        Returns:
            The share URL.
        """
        if not filename:
            raise ValueError("Please select a file")
        content_type = content_type or mimetypes.guess_type(filename)[0] or DEFAULT_CONTENT_TYPE
        if expiration is None:
            expiration = self.expiration

        def store(key: bytes) -> str:
            sealed = envelope.seal(data, key)
            metadata = FileMetadata(
                original_filename=filename,
                content_type=content_type,
                iv=transfer.to_text(envelope.envelope_nonce(sealed)),
            )
            return self.client.store_file(metadata, transfer.to_text(sealed), expiration)

        return self._create(store)

    def share_path(self, path: str | Path, content_type: str = None, expiration: int = None) -> str:
        """Encrypt and store a file from disk."""
        path = Path(path)
        return self.share_file(path.read_bytes(), path.name, content_type, expiration)

    # --- reveal path -------------------------------------------------------

    def prepare(self, url: str) -> ShareLink:
        """
        Parse a share link and check its key before anything is fetched.

        Fetching consumes the secret, so callers should confirm with the
        user between prepare() and reveal().

        Raises:
            LinkError: If the link has no usable id or key.
            InvalidKey: If the key is not a valid base58 key.
        """
        self._begin(ShareState.CONFIRMING)
        try:
            link = parse_link(url)
            if not is_valid_key(link.key):
                raise InvalidKey("Encryption key in link is not valid")
        except Exception as e:
            self.flow.fail(str(e))
            raise
        self._pending = link
        return link

    def reveal(self, link: ShareLink = None) -> RevealedSecret:
        """
        Fetch and decrypt a secret. The service deletes it on read.

        Args:
            link: Link from prepare(). Defaults to the last prepared link.

        Raises:
            SecretUnavailable: If the secret is missing, already viewed, or
                the key does not fit. The cause is chained but not named.
            NetworkFailure: If the service could not be reached.
        """
        if link is None:
            link = self._pending
        if link is None:
            raise ValueError("No link prepared")

        if self.flow.state is not ShareState.CONFIRMING:
            self._begin(ShareState.CONFIRMING)
        self.flow.advance(ShareState.REVEALING)
        self._pending = None

        try:
            secret = self._reveal(link)
        except NetworkFailure as e:
            self.flow.fail(str(e))
            raise
        except _MASKED_ERRORS as e:
            logger.debug(f"Reveal of {link.id} failed: {type(e).__name__}")
            self.flow.fail(SecretUnavailable.MESSAGE)
            raise SecretUnavailable() from e
        except Exception as e:
            self.flow.fail(str(e))
            raise

        self.flow.advance(ShareState.REVEALED)
        return secret

    def reveal_url(self, url: str) -> RevealedSecret:
        """prepare() and reveal() in one step, for non-interactive callers."""
        return self.reveal(self.prepare(url))

    def _reveal(self, link: ShareLink) -> RevealedSecret:
        key = decode_key(link.key)

        try:
            encrypted = self.client.fetch_secret(link.id)
        except NotFound:
            return self._reveal_file(link, key)

        plaintext = envelope.open(transfer.from_text(encrypted), key)
        return RevealedSecret(text=plaintext.decode("utf-8", errors="replace"))

    def _reveal_file(self, link: ShareLink, key: bytes) -> RevealedSecret:
        payload = self.client.fetch_file(link.id)
        sealed = transfer.from_text(payload.encrypted_data)

        if transfer.from_text(payload.metadata.iv) != envelope.envelope_nonce(sealed):
            raise MalformedEnvelope("File metadata iv does not match the envelope nonce")

        return RevealedSecret(
            data=envelope.open(sealed, key),
            filename=payload.metadata.original_filename,
            content_type=payload.metadata.content_type,
        )
