"""
Wire models for the storage service API.

One canonical, versioned schema. Field names on the wire are camelCase;
the Python side uses snake_case and converts in to_dict / from_dict.
"""

from dataclasses import dataclass

from snappwd.errors import StorageError


API_VERSION = "v1"
API_PREFIX = f"/api/{API_VERSION}"

HOUR = 3600
DAY = 86400
WEEK = 604800

# Presets offered to users when creating a secret
EXPIRATION_OPTIONS = {
    "1 Hour": HOUR,
    "1 Day": DAY,
    "1 Week": WEEK,
}
DEFAULT_EXPIRATION = DAY


def validate_expiration(expiration: int) -> int:
    """Expiration must be a positive number of seconds."""
    if isinstance(expiration, bool) or not isinstance(expiration, int) or expiration <= 0:
        raise ValueError(f"Expiration must be a positive number of seconds, got {expiration!r}")
    return expiration


def _require(data: dict, field: str, kind: type = str):
    try:
        value = data[field]
    except (KeyError, TypeError):
        raise StorageError(f"Response is missing field {field!r}") from None
    if not isinstance(value, kind):
        raise StorageError(f"Response field {field!r} is not a {kind.__name__}")
    return value


@dataclass
class SecretPayload:
    """A text secret as stored: base64 envelope plus lifetime."""
    encrypted_secret: str
    expiration: int | None = None

    def to_dict(self) -> dict:
        data = {"encryptedSecret": self.encrypted_secret}
        if self.expiration is not None:
            data["expiration"] = self.expiration
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "SecretPayload":
        return cls(
            encrypted_secret=_require(data, "encryptedSecret"),
            expiration=data.get("expiration"),
        )


@dataclass
class FileMetadata:
    """
    Plaintext details the recipient needs to rebuild the file.

    iv is the base64 of the nonce inside the envelope. The envelope is
    authoritative; iv is a duplicate that must always match it.
    """
    original_filename: str
    content_type: str
    iv: str

    def to_dict(self) -> dict:
        return {
            "originalFilename": self.original_filename,
            "contentType": self.content_type,
            "iv": self.iv,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FileMetadata":
        return cls(
            original_filename=_require(data, "originalFilename"),
            content_type=_require(data, "contentType"),
            iv=_require(data, "iv"),
        )


@dataclass
class FilePayload:
    """A file secret as stored: metadata, base64 envelope, lifetime."""
    metadata: FileMetadata
    encrypted_data: str
    expiration: int | None = None

    def to_dict(self) -> dict:
        data = {
            "metadata": self.metadata.to_dict(),
            "encryptedData": self.encrypted_data,
        }
        if self.expiration is not None:
            data["expiration"] = self.expiration
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "FilePayload":
        return cls(
            metadata=FileMetadata.from_dict(_require(data, "metadata", dict)),
            encrypted_data=_require(data, "encryptedData"),
            expiration=data.get("expiration"),
        )
