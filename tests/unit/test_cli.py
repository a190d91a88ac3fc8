import json

from cryptography.hazmat.primitives import serialization
from typer.testing import CliRunner

from compactsign import sign, unsign
from compactsign.cli import app

runner = CliRunner()


def _isolate(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in ("COMPACTSIGN_CONFIG", "COMPACTSIGN_ALG", "COMPACTSIGN_MAX_AGE", "COMPACTSIGN_COMPRESS", "COMPACTSIGN_SECRET"):
        monkeypatch.delenv(name, raising=False)


def test_sign_and_unsign_with_secret(tmp_path, monkeypatch):
    _isolate(tmp_path, monkeypatch)
    result = runner.invoke(app, ["sign", '{"user": 42}', "--secret", "s3cr3t"])
    assert result.exit_code == 0, f"Output: {result.stdout}"
    token = result.stdout.strip()
    assert unsign(token, b"s3cr3t") == {"user": 42}

    result = runner.invoke(app, ["unsign", token, "--secret", "s3cr3t"])
    assert result.exit_code == 0, f"Output: {result.stdout}"
    assert json.loads(result.stdout) == {"user": 42}


def test_secret_from_environment_and_stdin(tmp_path, monkeypatch):
    _isolate(tmp_path, monkeypatch)
    monkeypatch.setenv("COMPACTSIGN_SECRET", "env-secret")
    result = runner.invoke(app, ["sign", "--raw", "--alg", "hs512"], input="hello\n")
    assert result.exit_code == 0, f"Output: {result.stdout}"
    token = result.stdout.strip()
    assert unsign(token, b"env-secret", alg="HS512") == "hello"

    result = runner.invoke(app, ["unsign", "-", "--alg", "HS512"], input=token)
    assert result.exit_code == 0
    assert json.loads(result.stdout) == "hello"


def test_asymmetric_keys_from_pem_files(tmp_path, monkeypatch, ec_p256_key):
    _isolate(tmp_path, monkeypatch)
    private_path = tmp_path / "ec.pem"
    public_path = tmp_path / "ec.pub.pem"
    private_path.write_bytes(
        ec_p256_key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
    )
    public_path.write_bytes(
        ec_p256_key.public_key().public_bytes(
            serialization.Encoding.PEM,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    )

    result = runner.invoke(
        app, ["sign", "[1, 2, 3]", "--alg", "ES256", "--key-file", str(private_path), "--compressor", "bz2"]
    )
    assert result.exit_code == 0, f"Output: {result.stdout}"
    token = result.stdout.strip()

    result = runner.invoke(app, ["unsign", token, "--alg", "ES256", "--key-file", str(public_path)])
    assert result.exit_code == 0, f"Output: {result.stdout}"
    assert json.loads(result.stdout) == [1, 2, 3]


def test_unsign_reports_failures(tmp_path, monkeypatch):
    _isolate(tmp_path, monkeypatch)
    token = sign("x", b"right", timestamp=0)

    result = runner.invoke(app, ["unsign", token, "--secret", "wrong"])
    assert result.exit_code == 1
    assert "corrupt or manipulated" in result.stdout

    result = runner.invoke(app, ["unsign", token, "--secret", "right", "--max-age", "60"])
    assert result.exit_code == 1
    assert "older than" in result.stdout

    result = runner.invoke(app, ["unsign", "a.b.c", "--secret", "right"])
    assert result.exit_code == 1


def test_max_age_from_config(tmp_path, monkeypatch):
    _isolate(tmp_path, monkeypatch)
    (tmp_path / "compactsign.yaml").write_text("signing:\n  max_age: 60\n")
    token = sign("x", b"right", timestamp=0)
    result = runner.invoke(app, ["unsign", token, "--secret", "right"])
    assert result.exit_code == 1
    assert "older than 60" in result.stdout


def test_missing_key_material(tmp_path, monkeypatch):
    _isolate(tmp_path, monkeypatch)
    result = runner.invoke(app, ["sign", "{}"])
    assert result.exit_code == 1
    assert "needs a secret" in result.stdout

    result = runner.invoke(app, ["sign", "{}", "--alg", "RS256"])
    assert result.exit_code == 1
    assert "PEM key file" in result.stdout


def test_invalid_json_payload(tmp_path, monkeypatch):
    _isolate(tmp_path, monkeypatch)
    result = runner.invoke(app, ["sign", "{not json", "--secret", "s"])
    assert result.exit_code == 1
    assert "not valid JSON" in result.stdout


def test_algorithms_command():
    result = runner.invoke(app, ["algorithms"])
    assert result.exit_code == 0
    assert "HS256\thmac" in result.stdout
    assert "ES512\tasymmetric" in result.stdout


def test_invalid_config_reports_error(tmp_path, monkeypatch):
    _isolate(tmp_path, monkeypatch)
    monkeypatch.setenv("COMPACTSIGN_MAX_AGE", "soon")
    result = runner.invoke(app, ["unsign", "a.b.c.d", "--secret", "s"])
    assert result.exit_code == 1
    assert "max_age" in result.stdout
    assert result.exception is None or isinstance(result.exception, SystemExit)

    monkeypatch.delenv("COMPACTSIGN_MAX_AGE")
    (tmp_path / "compactsign.yaml").write_text("signing:\n  alg: HS384\n")
    result = runner.invoke(app, ["sign", "{}", "--secret", "s"])
    assert result.exit_code == 1
    assert "HS384" in result.stdout
