"""Exception hierarchy for compact token signing."""

from __future__ import annotations

import enum
from datetime import timedelta
from typing import Optional, Union

MaxAge = Union[int, float, timedelta]


class CompactSignError(Exception):
    """Base class for every error raised by :mod:`compactsign`."""


class MalformedTokenError(CompactSignError, ValueError):
    """The wire string is not four non-empty base64url segments.

    Raised before any signature verification takes place.
    """


class UnsupportedAlgorithmError(CompactSignError, ValueError):
    """The requested algorithm identifier is not in the registry."""

    def __init__(self, alg: object) -> None:
        super().__init__(f"Unsupported signing algorithm: {alg!r}")
        self.alg = alg


class SerializationError(CompactSignError, ValueError):
    """A payload could not be serialized, or authenticated bytes could not be decoded."""


class ValidationReason(str, enum.Enum):
    BAD_SIGNATURE = "bad-signature"
    EXPIRED = "expired"


class ValidationError(CompactSignError):
    """Token failed verification.

    ``reason`` tells a forged or corrupted token (``bad-signature``) apart from
    one that authenticated but is older than ``max_age`` (``expired``).
    """

    def __init__(
        self,
        reason: ValidationReason,
        message: Optional[str] = None,
        max_age: Optional[MaxAge] = None,
    ) -> None:
        if message is None:
            if reason is ValidationReason.EXPIRED:
                message = f"Token is older than {max_age}"
            else:
                message = "Message seems corrupt or manipulated."
        super().__init__(message)
        self.reason = reason
        self.max_age = max_age

    @classmethod
    def bad_signature(cls) -> "ValidationError":
        return cls(ValidationReason.BAD_SIGNATURE)

    @classmethod
    def expired(cls, max_age: MaxAge) -> "ValidationError":
        return cls(ValidationReason.EXPIRED, max_age=max_age)
