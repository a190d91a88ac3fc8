"""Self-describing payload serialization with optional compression.

Every serialized payload starts with a five byte header::

    b"CSP" | version | compressor id | kind

so :meth:`PayloadSerializer.deserialize` never needs to be told whether or
how the payload was compressed.
"""

from __future__ import annotations

import abc
import bz2
import lzma
import zlib
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Union

from pydantic_core import PydanticSerializationError, from_json, to_json

from .errors import SerializationError

MAGIC = b"CSP"
FORMAT_VERSION = 1
HEADER_SIZE = len(MAGIC) + 3

KIND_BYTES = 0
KIND_TEXT = 1
KIND_JSON = 2

# Compressor ids below this value belong to the built-in compressors.
RESERVED_IDS = 16
NO_COMPRESSION = 0


class Compressor(metaclass=abc.ABCMeta):
    """A reversible byte transform identified by a one byte id."""

    compressor_id: int
    name: str = "custom"

    @abc.abstractmethod
    def compress(self, data: bytes) -> bytes:
        raise NotImplementedError

    @abc.abstractmethod
    def decompress(self, data: bytes) -> bytes:
        raise NotImplementedError

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"{type(self).__name__}(id={self.compressor_id})"


class ZlibCompressor(Compressor):
    """Fast deflate; the default when ``compress=True``."""

    compressor_id = 1
    name = "zlib"

    def __init__(self, level: int = 1) -> None:
        self.level = level

    def compress(self, data: bytes) -> bytes:
        return zlib.compress(data, self.level)

    def decompress(self, data: bytes) -> bytes:
        return zlib.decompress(data)


class LzmaCompressor(Compressor):
    """Slow, high ratio compression for large payloads."""

    compressor_id = 2
    name = "lzma"

    def compress(self, data: bytes) -> bytes:
        return lzma.compress(data)

    def decompress(self, data: bytes) -> bytes:
        return lzma.decompress(data)


class Bz2Compressor(Compressor):
    compressor_id = 3
    name = "bz2"

    def compress(self, data: bytes) -> bytes:
        return bz2.compress(data)

    def decompress(self, data: bytes) -> bytes:
        return bz2.decompress(data)


DEFAULT_COMPRESSOR: Compressor = ZlibCompressor()

BUILTIN_COMPRESSORS: Mapping[int, Compressor] = MappingProxyType(
    {
        c.compressor_id: c
        for c in (DEFAULT_COMPRESSOR, LzmaCompressor(), Bz2Compressor())
    }
)

CompressSpec = Union[bool, None, Compressor]


def _check_json_shape(value: Any) -> None:
    """Reject containers that JSON would silently turn into something else."""
    if isinstance(value, (tuple, set, frozenset)):
        raise SerializationError(
            f"Cannot serialize {type(value).__name__}; use a list instead"
        )
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise SerializationError(
                    f"Cannot serialize dict key {key!r}; keys must be str"
                )
            _check_json_shape(item)
    elif isinstance(value, list):
        for item in value:
            _check_json_shape(item)


def compressor_by_name(name: str) -> Compressor:
    """Return the built-in compressor called ``name``."""
    for compressor in BUILTIN_COMPRESSORS.values():
        if compressor.name == name.lower():
            return compressor
    raise ValueError(f"Unknown compressor: {name}")


class PayloadSerializer:
    """Turns payload values into self-describing bytes and back.

    ``bytes`` and ``str`` payloads are stored as-is. Anything else is encoded
    as JSON with :func:`pydantic_core.to_json`, so pydantic models, datetimes
    and UUIDs are accepted; they come back as plain JSON values.

    Tuples, sets and dicts with non-``str`` keys are rejected rather than
    coming back as lists or ``str``-keyed dicts.

    Custom compressors must be passed via ``compressors`` before they can be
    used to serialize. Their ids must be at or above ``RESERVED_IDS``.
    """

    def __init__(self, compressors: Iterable[Compressor] = ()) -> None:
        table = dict(BUILTIN_COMPRESSORS)
        for compressor in compressors:
            cid = compressor.compressor_id
            if not RESERVED_IDS <= cid <= 255:
                raise ValueError(
                    f"Compressor id {cid} must be between {RESERVED_IDS} and 255"
                )
            if cid in table:
                raise ValueError(f"Duplicate compressor id: {cid}")
            table[cid] = compressor
        self._compressors: Mapping[int, Compressor] = MappingProxyType(table)

    @property
    def compressors(self) -> Mapping[int, Compressor]:
        return self._compressors

    def _resolve(self, compress: CompressSpec) -> Optional[Compressor]:
        if compress is True:
            return DEFAULT_COMPRESSOR
        if isinstance(compress, Compressor):
            registered = self._compressors.get(compress.compressor_id)
            if registered is None or type(registered) is not type(compress):
                raise ValueError(
                    f"Compressor {compress.name!r} with id {compress.compressor_id} "
                    "is not registered with this serializer"
                )
            return compress
        if compress is None or compress is False:
            return None
        raise TypeError(f"compress must be a bool or Compressor, got {type(compress).__name__}")

    def serialize(self, value: Any, compress: CompressSpec = True) -> bytes:
        """Encode ``value`` and optionally compress the body."""
        if isinstance(value, (bytes, bytearray, memoryview)):
            kind, body = KIND_BYTES, bytes(value)
        elif isinstance(value, str):
            kind, body = KIND_TEXT, value.encode("utf-8")
        else:
            _check_json_shape(value)
            try:
                kind, body = KIND_JSON, to_json(value)
            except PydanticSerializationError as e:
                raise SerializationError(
                    f"Cannot serialize payload of type '{type(value).__name__}': {e}"
                ) from e

        compressor = self._resolve(compress)
        cid = NO_COMPRESSION
        if compressor is not None:
            cid = compressor.compressor_id
            body = compressor.compress(body)

        return MAGIC + bytes((FORMAT_VERSION, cid, kind)) + body

    def deserialize(self, data: bytes) -> Any:
        """Decode bytes produced by :meth:`serialize`."""
        if len(data) < HEADER_SIZE or not data.startswith(MAGIC):
            raise SerializationError("Payload header is missing or corrupt")

        version, cid, kind = data[len(MAGIC) : HEADER_SIZE]
        if version != FORMAT_VERSION:
            raise SerializationError(f"Unsupported payload format version: {version}")

        body = data[HEADER_SIZE:]
        if cid != NO_COMPRESSION:
            compressor = self._compressors.get(cid)
            if compressor is None:
                raise SerializationError(f"Unknown compressor id: {cid}")
            try:
                body = compressor.decompress(body)
            except Exception as e:
                raise SerializationError(
                    f"Failed to decompress payload with {compressor.name}: {e}"
                ) from e

        if kind == KIND_BYTES:
            return body
        try:
            if kind == KIND_TEXT:
                return body.decode("utf-8")
            if kind == KIND_JSON:
                return from_json(body)
        except ValueError as e:
            raise SerializationError(f"Failed to decode payload body: {e}") from e
        raise SerializationError(f"Unknown payload kind: {kind}")


default_serializer = PayloadSerializer()


def serialize(value: Any, compress: CompressSpec = True) -> bytes:
    return default_serializer.serialize(value, compress)


def deserialize(data: bytes) -> Any:
    return default_serializer.deserialize(data)


__all__ = [
    "BUILTIN_COMPRESSORS",
    "Bz2Compressor",
    "CompressSpec",
    "Compressor",
    "DEFAULT_COMPRESSOR",
    "LzmaCompressor",
    "PayloadSerializer",
    "ZlibCompressor",
    "compressor_by_name",
    "default_serializer",
    "deserialize",
    "serialize",
]
