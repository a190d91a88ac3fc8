from __future__ import annotations

import os
from typing import Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator

from .algorithms import AlgorithmId
from .serialization import CompressSpec, compressor_by_name

DEFAULT_CONFIG_PATH = "compactsign.yaml"


class SigningConfig(BaseModel):
    """Per-call signing options that can be loaded from a file."""

    alg: AlgorithmId = AlgorithmId.HS256
    compress: Union[bool, Literal["zlib", "lzma", "bz2"]] = True
    max_age: Optional[float] = Field(default=None, ge=0, description="Seconds")

    @field_validator("alg", mode="before")
    @classmethod
    def _parse_alg(cls, value: object) -> AlgorithmId:
        return AlgorithmId.parse(value)  # type: ignore[arg-type]

    def compress_spec(self) -> CompressSpec:
        """Return the value to pass as ``compress`` when signing."""
        if isinstance(self.compress, bool):
            return self.compress
        return compressor_by_name(self.compress)


class CompactSignConfig(BaseModel):
    """Top-level configuration model."""

    signing: SigningConfig = SigningConfig()
    secret_env: str = "COMPACTSIGN_SECRET"


def load_config(path: Optional[str] = None) -> CompactSignConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to COMPACTSIGN_CONFIG
            env variable or 'compactsign.yaml' in the current directory.

    Environment variables COMPACTSIGN_ALG, COMPACTSIGN_MAX_AGE and
    COMPACTSIGN_COMPRESS override values read from the file.
    """

    config_path = path or os.getenv("COMPACTSIGN_CONFIG", DEFAULT_CONFIG_PATH)
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = CompactSignConfig(**data)
    else:
        config = CompactSignConfig()

    overrides = {}
    env_alg = os.getenv("COMPACTSIGN_ALG")
    if env_alg:
        overrides["alg"] = env_alg
    env_max_age = os.getenv("COMPACTSIGN_MAX_AGE")
    if env_max_age:
        overrides["max_age"] = env_max_age
    env_compress = os.getenv("COMPACTSIGN_COMPRESS")
    if env_compress:
        lowered = env_compress.lower()
        if lowered in ("1", "true", "yes"):
            overrides["compress"] = True
        elif lowered in ("0", "false", "no"):
            overrides["compress"] = False
        else:
            overrides["compress"] = lowered
    if overrides:
        config.signing = SigningConfig(
            **{**config.signing.model_dump(), **overrides}
        )
    return config
