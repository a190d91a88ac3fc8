"""Registry of the signing algorithms a compact token can be sealed with.

Each :class:`AlgorithmId` maps to exactly one :class:`SigningAlgorithm`, a
pair of ``signer(message, key)`` and ``verifier(message, signature, key)``
callables. The primitives are PyJWT's JWS algorithm implementations, which
in turn run on ``cryptography``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Mapping, Union

from cryptography.hazmat.primitives.asymmetric.ec import EllipticCurvePrivateKey
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from jwt.algorithms import (
    Algorithm,
    ECAlgorithm,
    HMACAlgorithm,
    RSAAlgorithm,
    RSAPSSAlgorithm,
)

from .errors import UnsupportedAlgorithmError

Signer = Callable[[bytes, Any], bytes]
Verifier = Callable[[bytes, bytes, Any], bool]


class AlgorithmId(str, enum.Enum):
    """Supported MAC and digital-signature schemes."""

    HS256 = "HS256"
    HS512 = "HS512"
    RS256 = "RS256"
    RS512 = "RS512"
    PS256 = "PS256"
    PS512 = "PS512"
    ES256 = "ES256"
    ES512 = "ES512"

    @classmethod
    def parse(cls, value: Union["AlgorithmId", str]) -> "AlgorithmId":
        """Return the identifier for ``value``, ignoring case."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.upper())
            except ValueError:
                pass
        raise UnsupportedAlgorithmError(value)

    @property
    def is_symmetric(self) -> bool:
        return self.value.startswith("HS")


@dataclass(frozen=True)
class SigningAlgorithm:
    """Signer/verifier pair for one :class:`AlgorithmId`."""

    alg: AlgorithmId
    signer: Signer
    verifier: Verifier

    def sign(self, message: bytes, key: Any) -> bytes:
        return self.signer(message, key)

    def verify(self, message: bytes, signature: bytes, key: Any) -> bool:
        return self.verifier(message, signature, key)


def _public_half(key: Any) -> Any:
    if isinstance(key, (RSAPrivateKey, EllipticCurvePrivateKey)):
        return key.public_key()
    return key


def _build(alg: AlgorithmId, impl: Algorithm) -> SigningAlgorithm:
    """Wrap a PyJWT algorithm so both sides take ``(message, ..., key)``.

    Keys go through ``prepare_key`` so PEM text works as well as key objects.
    Asymmetric verifiers accept a private key and use its public half.
    """

    def signer(message: bytes, key: Any) -> bytes:
        return impl.sign(message, impl.prepare_key(key))

    def verifier(message: bytes, signature: bytes, key: Any) -> bool:
        prepared = impl.prepare_key(key)
        if not alg.is_symmetric:
            prepared = _public_half(prepared)
        return impl.verify(message, prepared, signature)

    return SigningAlgorithm(alg=alg, signer=signer, verifier=verifier)


ALGORITHMS: Mapping[AlgorithmId, SigningAlgorithm] = MappingProxyType(
    {
        AlgorithmId.HS256: _build(AlgorithmId.HS256, HMACAlgorithm(HMACAlgorithm.SHA256)),
        AlgorithmId.HS512: _build(AlgorithmId.HS512, HMACAlgorithm(HMACAlgorithm.SHA512)),
        AlgorithmId.RS256: _build(AlgorithmId.RS256, RSAAlgorithm(RSAAlgorithm.SHA256)),
        AlgorithmId.RS512: _build(AlgorithmId.RS512, RSAAlgorithm(RSAAlgorithm.SHA512)),
        AlgorithmId.PS256: _build(AlgorithmId.PS256, RSAPSSAlgorithm(RSAPSSAlgorithm.SHA256)),
        AlgorithmId.PS512: _build(AlgorithmId.PS512, RSAPSSAlgorithm(RSAPSSAlgorithm.SHA512)),
        AlgorithmId.ES256: _build(AlgorithmId.ES256, ECAlgorithm(ECAlgorithm.SHA256)),
        AlgorithmId.ES512: _build(AlgorithmId.ES512, ECAlgorithm(ECAlgorithm.SHA512)),
    }
)


def get_algorithm(
    alg: Union[AlgorithmId, str],
    algorithms: Mapping[AlgorithmId, SigningAlgorithm] = ALGORITHMS,
) -> SigningAlgorithm:
    """Look up ``alg`` in ``algorithms``.

    Raises:
        UnsupportedAlgorithmError: If ``alg`` is unknown or not registered.
    """
    alg_id = AlgorithmId.parse(alg)
    try:
        return algorithms[alg_id]
    except KeyError:
        raise UnsupportedAlgorithmError(alg) from None


__all__ = [
    "ALGORITHMS",
    "AlgorithmId",
    "SigningAlgorithm",
    "Signer",
    "Verifier",
    "get_algorithm",
]
