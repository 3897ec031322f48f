"""
Errors
Every failure the share-link client can raise.

Cryptographic errors are final: the same inputs always fail the same way,
so there is nothing to retry. None of them ever carries plaintext.
"""


class SnapPwdError(Exception):
    """Base class for all snappwd errors."""


class InvalidEncoding(SnapPwdError, ValueError):
    """Text contains characters outside the expected encoding alphabet."""


class InvalidKey(SnapPwdError, ValueError):
    """Key material does not decode to an accepted key size."""


class MalformedEnvelope(SnapPwdError):
    """Envelope is too short or structurally inconsistent."""


class AuthenticationFailure(SnapPwdError):
    """AES-GCM tag did not verify: wrong key, or corrupted or tampered data."""


class LinkError(SnapPwdError, ValueError):
    """A share link could not be built or parsed."""


class MissingKey(LinkError):
    """The link carries no key segment."""


class MissingId(LinkError):
    """The link carries no secret identifier."""


class InvalidId(LinkError):
    """The identifier contains characters outside the safe set."""


class StorageError(SnapPwdError):
    """The storage service rejected a request or returned an unusable body."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class NotFound(StorageError):
    """The id is unknown, expired, or was already read."""


class NetworkFailure(StorageError):
    """The storage service could not be reached."""


class SecretUnavailable(SnapPwdError):
    """
    Read-path failure shown to the recipient.

    Deliberately does not say whether the secret was missing, already
    viewed, or the key was wrong. The underlying cause is chained.
    """

    MESSAGE = "Secret not found, already viewed, or the key is wrong."

    def __init__(self, message: str = None):
        super().__init__(message or self.MESSAGE)


class InvalidTransition(SnapPwdError):
    """A share flow was asked to move to a state it cannot reach."""
