"""Key loading helpers for the command line interface."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

from cryptography.hazmat.primitives import serialization

from .algorithms import AlgorithmId


def load_pem_key(path: Path, private: bool) -> Any:
    """Read a PEM encoded private or public key from ``path``."""
    data = Path(path).expanduser().read_bytes()
    if private:
        return serialization.load_pem_private_key(data, password=None)
    return serialization.load_pem_public_key(data)


def resolve_key(
    alg: AlgorithmId,
    *,
    private: bool,
    key_file: Optional[Path] = None,
    secret: Optional[str] = None,
    secret_env: str = "COMPACTSIGN_SECRET",
) -> Any:
    """Return key material suitable for ``alg``.

    HMAC algorithms take a shared secret from ``secret``, ``key_file`` (raw
    bytes) or the ``secret_env`` environment variable, in that order.
    Asymmetric algorithms need a PEM ``key_file``: a private key to sign, a
    public key to verify.

    Raises:
        ValueError: If no usable key material was supplied.
    """
    if alg.is_symmetric:
        if secret:
            return secret.encode("utf-8")
        if key_file is not None:
            return Path(key_file).expanduser().read_bytes()
        env_secret = os.getenv(secret_env)
        if env_secret:
            return env_secret.encode("utf-8")
        raise ValueError(
            f"{alg.value} needs a secret: use --secret, --key-file or ${secret_env}"
        )

    if key_file is None:
        raise ValueError(f"{alg.value} needs a PEM key file (--key-file)")
    return load_pem_key(key_file, private=private)
