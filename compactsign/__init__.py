"""compactsign: compact, salted and timestamped message signing."""

from .algorithms import ALGORITHMS, AlgorithmId, SigningAlgorithm, get_algorithm
from .compact import Token, TokenCodec, decode, encode, sign, unsign
from .config import CompactSignConfig, SigningConfig, load_config
from .errors import (
    CompactSignError,
    MalformedTokenError,
    SerializationError,
    UnsupportedAlgorithmError,
    ValidationError,
    ValidationReason,
)
from .result import Err, Ok, Result
from .serialization import Compressor, PayloadSerializer

__version__ = "0.1.0"
__all__ = [
    "ALGORITHMS",
    "AlgorithmId",
    "CompactSignConfig",
    "CompactSignError",
    "Compressor",
    "Err",
    "MalformedTokenError",
    "Ok",
    "PayloadSerializer",
    "Result",
    "SerializationError",
    "SigningAlgorithm",
    "SigningConfig",
    "Token",
    "TokenCodec",
    "UnsupportedAlgorithmError",
    "ValidationError",
    "ValidationReason",
    "decode",
    "encode",
    "get_algorithm",
    "load_config",
    "sign",
    "unsign",
]
