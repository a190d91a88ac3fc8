"""Tests for configuration loading."""

import pydantic
import pytest

from compactsign import AlgorithmId, load_config
from compactsign.serialization import LzmaCompressor


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in ("COMPACTSIGN_CONFIG", "COMPACTSIGN_ALG", "COMPACTSIGN_MAX_AGE", "COMPACTSIGN_COMPRESS"):
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_config_file():
    config = load_config()
    assert config.signing.alg is AlgorithmId.HS256
    assert config.signing.compress is True
    assert config.signing.max_age is None
    assert config.secret_env == "COMPACTSIGN_SECRET"


def test_load_config_from_env(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
signing:
  alg: es256
  compress: lzma
  max_age: 3600
secret_env: MY_SECRET
"""
    )
    monkeypatch.setenv("COMPACTSIGN_CONFIG", str(config_path))

    config = load_config()
    assert config.signing.alg is AlgorithmId.ES256
    assert isinstance(config.signing.compress_spec(), LzmaCompressor)
    assert config.signing.max_age == 3600
    assert config.secret_env == "MY_SECRET"


def test_env_overrides_file(tmp_path, monkeypatch):
    config_path = tmp_path / "compactsign.yaml"
    config_path.write_text("signing:\n  alg: HS512\n  max_age: 10\n")
    monkeypatch.setenv("COMPACTSIGN_ALG", "rs512")
    monkeypatch.setenv("COMPACTSIGN_COMPRESS", "false")

    config = load_config()
    assert config.signing.alg is AlgorithmId.RS512
    assert config.signing.max_age == 10
    assert config.signing.compress_spec() is False


def test_invalid_values_are_rejected(tmp_path):
    config_path = tmp_path / "bad.yaml"
    config_path.write_text("signing:\n  alg: HS384\n")
    with pytest.raises(pydantic.ValidationError):
        load_config(str(config_path))

    config_path.write_text("signing:\n  max_age: -1\n")
    with pytest.raises(pydantic.ValidationError):
        load_config(str(config_path))
