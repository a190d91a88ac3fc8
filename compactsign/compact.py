"""Compact message signing.

A token seals an arbitrary payload together with a random salt and the
creation time::

    B64U(input) . B64U(signature) . B64U(salt) . B64U(stamp)

``input`` is the serialized (usually compressed) payload, ``salt`` is eight
random bytes and ``stamp`` is the Unix time in seconds as a signed 64-bit
big-endian integer. The signature covers ``input || salt || stamp`` so
neither the salt nor the timestamp can be swapped without re-signing.

The format carries a fixed overhead per message and pays off for large
payloads; it is meant for secure message transfer rather than small auth
tokens.
"""

from __future__ import annotations

import logging
import re
import secrets
import struct
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Mapping, Optional, Union

from jwt.utils import base64url_decode, base64url_encode

from .algorithms import ALGORITHMS, AlgorithmId, SigningAlgorithm, get_algorithm
from .errors import MalformedTokenError, MaxAge, ValidationError
from .result import Result, capture
from .serialization import CompressSpec, PayloadSerializer, default_serializer

logger = logging.getLogger(__name__)

SALT_SIZE = 8
STAMP_SIZE = 8
SEGMENT_COUNT = 4
DEFAULT_ALG = AlgorithmId.HS256

_STAMP = struct.Struct(">q")
_B64URL = re.compile(r"[A-Za-z0-9_-]+")


def current_timestamp() -> int:
    """Current Unix time in whole seconds."""
    return int(time.time())


def _b64encode(data: bytes) -> str:
    return base64url_encode(data).decode("ascii")


def _b64decode(segment: str) -> bytes:
    # A lone trailing character can never be valid base64.
    if not _B64URL.fullmatch(segment) or len(segment) % 4 == 1:
        raise MalformedTokenError("Token segment is not valid base64url")
    return base64url_decode(segment)


def _max_age_seconds(max_age: MaxAge) -> float:
    if isinstance(max_age, timedelta):
        return max_age.total_seconds()
    return max_age


@dataclass(frozen=True)
class Token:
    """The four decoded segments of a compact token."""

    input: bytes
    signature: bytes
    salt: bytes
    stamp: bytes

    @property
    def candidate(self) -> bytes:
        """Bytes covered by the signature."""
        return self.input + self.salt + self.stamp

    @property
    def timestamp(self) -> int:
        return _STAMP.unpack(self.stamp)[0]

    def to_wire(self) -> str:
        return ".".join(
            _b64encode(part)
            for part in (self.input, self.signature, self.salt, self.stamp)
        )

    @classmethod
    def from_wire(cls, token: str) -> "Token":
        """Parse ``token`` without verifying it.

        Raises:
            MalformedTokenError: If the token is not exactly four non-empty
                base64url segments, or salt/stamp have the wrong size.
        """
        if not isinstance(token, str):
            raise MalformedTokenError(
                f"Token must be a string, got {type(token).__name__}"
            )
        parts = token.split(".")
        if len(parts) != SEGMENT_COUNT:
            raise MalformedTokenError(
                f"Token must have {SEGMENT_COUNT} segments, got {len(parts)}"
            )
        input_, signature, salt, stamp = (_b64decode(part) for part in parts)
        if len(salt) != SALT_SIZE or len(stamp) != STAMP_SIZE:
            raise MalformedTokenError("Token salt or stamp has the wrong size")
        return cls(input=input_, signature=signature, salt=salt, stamp=stamp)


class TokenCodec:
    """Signs and verifies compact tokens.

    ``algorithms`` is the read-only registry the codec dispatches through and
    ``serializer`` turns payloads into bytes and back. Both are held by
    reference; a codec carries no other state and is safe to share between
    threads.
    """

    def __init__(
        self,
        algorithms: Mapping[AlgorithmId, SigningAlgorithm] = ALGORITHMS,
        serializer: PayloadSerializer = default_serializer,
    ) -> None:
        self.algorithms = algorithms
        self.serializer = serializer

    def sign(
        self,
        data: Any,
        key: Any,
        *,
        alg: Union[AlgorithmId, str] = DEFAULT_ALG,
        compress: CompressSpec = True,
        salt: Optional[bytes] = None,
        timestamp: Optional[int] = None,
    ) -> str:
        """Sign ``data`` with ``key`` and return the wire token.

        ``salt`` and ``timestamp`` default to fresh random bytes and the
        current time; pass them only to make output reproducible.
        """
        algorithm = get_algorithm(alg, self.algorithms)
        if salt is None:
            salt = secrets.token_bytes(SALT_SIZE)
        elif len(salt) != SALT_SIZE:
            raise ValueError(f"Salt must be {SALT_SIZE} bytes, got {len(salt)}")
        else:
            salt = bytes(salt)
        if timestamp is None:
            timestamp = current_timestamp()

        input_ = self.serializer.serialize(data, compress)
        stamp = _STAMP.pack(timestamp)
        signature = algorithm.sign(input_ + salt + stamp, key)

        logger.debug(
            f"Signed {len(input_)} byte payload with {algorithm.alg.value}"
        )
        return Token(input=input_, signature=signature, salt=salt, stamp=stamp).to_wire()

    def unsign(
        self,
        token: str,
        key: Any,
        *,
        alg: Union[AlgorithmId, str] = DEFAULT_ALG,
        max_age: Optional[MaxAge] = None,
        now: Optional[int] = None,
    ) -> Any:
        """Verify ``token`` and return the payload it carries.

        The signature is checked before the payload is decompressed or
        decoded. A token whose age is exactly ``max_age`` is still valid;
        tokens stamped in the future are accepted.

        Raises:
            MalformedTokenError: If ``token`` is not a well-formed token.
            ValidationError: If the signature does not match
                (``bad-signature``) or the token is older than ``max_age``
                (``expired``).
            SerializationError: If the authenticated payload cannot be decoded.
        """
        algorithm = get_algorithm(alg, self.algorithms)
        try:
            parsed = Token.from_wire(token)
        except MalformedTokenError as e:
            logger.debug(f"Rejected malformed token: {e}")
            raise

        if not algorithm.verify(parsed.candidate, parsed.signature, key):
            logger.warning(
                f"Signature verification failed for {algorithm.alg.value} token"
            )
            raise ValidationError.bad_signature()

        if max_age is not None:
            age = (current_timestamp() if now is None else now) - parsed.timestamp
            if age > _max_age_seconds(max_age):
                logger.warning(f"Token expired: age {age}s exceeds max_age {max_age}")
                raise ValidationError.expired(max_age)

        return self.serializer.deserialize(parsed.input)

    def encode(self, data: Any, key: Any, **options: Any) -> Result[str]:
        """Like :meth:`sign` but returns ``Ok(token)`` or ``Err(error)``."""
        return capture(self.sign, data, key, **options)

    def decode(self, token: str, key: Any, **options: Any) -> Result[Any]:
        """Like :meth:`unsign` but returns ``Ok(payload)`` or ``Err(error)``."""
        return capture(self.unsign, token, key, **options)


default_codec = TokenCodec()


def sign(data: Any, key: Any, **options: Any) -> str:
    """Sign arbitrary data with the default codec. See :meth:`TokenCodec.sign`."""
    return default_codec.sign(data, key, **options)


def unsign(token: str, key: Any, **options: Any) -> Any:
    """Verify a token with the default codec. See :meth:`TokenCodec.unsign`."""
    return default_codec.unsign(token, key, **options)


def encode(data: Any, key: Any, **options: Any) -> Result[str]:
    return default_codec.encode(data, key, **options)


def decode(token: str, key: Any, **options: Any) -> Result[Any]:
    return default_codec.decode(token, key, **options)


__all__ = [
    "DEFAULT_ALG",
    "SALT_SIZE",
    "STAMP_SIZE",
    "Token",
    "TokenCodec",
    "decode",
    "default_codec",
    "encode",
    "sign",
    "current_timestamp",
    "unsign",
]
