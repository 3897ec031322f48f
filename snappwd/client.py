"""
Storage Client
Thin HTTP client for the blob store that holds encrypted secrets.

The service is treated as a dumb key-value store: it receives base64
envelopes, hands back an id, and returns each envelope at most once.
Nothing sent here can decrypt anything.
"""

import logging

import requests

from snappwd.errors import NetworkFailure, NotFound, StorageError
from snappwd.links import validate_id
from snappwd.models import (
    API_PREFIX,
    FileMetadata,
    FilePayload,
    SecretPayload,
    validate_expiration,
)

logger = logging.getLogger(__name__)


class StorageClient:
    """
    Create and fetch encrypted secrets on the storage service.

    Args:
        api_url: Base URL of the service, e.g. "http://localhost:8080".
        timeout: Per-request timeout in seconds.
        session: Optional requests.Session to reuse connections.
    """

    def __init__(self, api_url: str, timeout: float = 10.0, session: requests.Session = None):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _url(self, resource: str, secret_id: str = None) -> str:
        url = f"{self.api_url}{API_PREFIX}/{resource}"
        if secret_id is not None:
            url += f"/{validate_id(secret_id)}"
        return url

    def _request(self, method: str, url: str, **kwargs) -> dict:
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            raise NetworkFailure(f"Request failed: {e}") from e

        if response.status_code == 404:
            raise NotFound("Secret not found or already viewed", status_code=404)
        if not response.ok:
            raise StorageError(
                f"Server returned status {response.status_code}: {response.reason}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError:
            raise StorageError("Server returned a body that is not JSON") from None

    def _store(self, resource: str, body: dict) -> str:
        data = self._request("POST", self._url(resource), json=body)
        secret_id = data.get("id") if isinstance(data, dict) else None
        if not isinstance(secret_id, str) or not secret_id:
            raise StorageError("Server response did not include an id")
        logger.info(f"Stored {resource} {secret_id}")
        return secret_id

    def _fetch(self, resource: str, secret_id: str) -> dict:
        data = self._request(
            "GET",
            self._url(resource, secret_id),
            headers={"Cache-Control": "no-store"},
        )
        logger.info(f"Fetched {resource} {secret_id}")
        return data

    def store_secret(self, encrypted_secret: str, expiration: int) -> str:
        """
        Store a base64 text envelope.

        Returns:
            The id issued by the service.
        """
        payload = SecretPayload(encrypted_secret, validate_expiration(expiration))
        return self._store("secrets", payload.to_dict())

    def fetch_secret(self, secret_id: str) -> str:
        """
        Fetch a base64 text envelope. The service deletes it on read.

        Raises:
            NotFound: If it does not exist or was already read.
        """
        return SecretPayload.from_dict(self._fetch("secrets", secret_id)).encrypted_secret

    def store_file(self, metadata: FileMetadata, encrypted_data: str, expiration: int) -> str:
        """Store a base64 file envelope with its metadata."""
        payload = FilePayload(metadata, encrypted_data, validate_expiration(expiration))
        return self._store("files", payload.to_dict())

    def fetch_file(self, secret_id: str) -> FilePayload:
        """Fetch a file envelope and its metadata."""
        return FilePayload.from_dict(self._fetch("files", secret_id))
