"""Command line interface for signing and verifying compact tokens."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import NoReturn, Optional

import typer

from compactsign import AlgorithmId, CompactSignError, load_config, sign, unsign
from compactsign.keys import resolve_key
from compactsign.serialization import compressor_by_name

app = typer.Typer(help="CLI for compact message signing")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """compactsign CLI entry point."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)


def _read_input(value: Optional[str]) -> str:
    if value is None or value == "-":
        return sys.stdin.read().strip()
    return value


def _fail(message: str) -> NoReturn:
    typer.secho(message, fg=typer.colors.RED)
    raise typer.Exit(code=1)


@app.command("sign")
def sign_command(
    data: Optional[str] = typer.Argument(None, help="JSON payload, or '-' for stdin"),
    alg: Optional[str] = typer.Option(None, help="Signing algorithm"),
    key_file: Optional[Path] = typer.Option(None, help="PEM private key or HMAC secret file"),
    secret: Optional[str] = typer.Option(None, help="HMAC shared secret"),
    compressor: Optional[str] = typer.Option(None, help="zlib, lzma or bz2"),
    no_compress: bool = typer.Option(False, "--no-compress", help="Store payload uncompressed"),
    raw: bool = typer.Option(False, "--raw", help="Sign DATA as a plain string"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Config file path"),
) -> None:
    """
    Sign a payload and print the token.

    Example:
        compactsign sign '{"user": 42}' --secret s3cr3t
        echo hello | compactsign sign --raw --alg ES256 --key-file ec.pem
    """
    try:
        config = load_config(config_path)
        alg_id = AlgorithmId.parse(alg) if alg else config.signing.alg
        key = resolve_key(
            alg_id,
            private=True,
            key_file=key_file,
            secret=secret,
            secret_env=config.secret_env,
        )
        compress = config.signing.compress_spec()
        if compressor:
            compress = compressor_by_name(compressor)
        if no_compress:
            compress = False

        text = _read_input(data)
        payload = text if raw else json.loads(text)
        token = sign(payload, key, alg=alg_id, compress=compress)
    except json.JSONDecodeError as e:
        _fail(f"Payload is not valid JSON: {e}")
    except (CompactSignError, OSError, ValueError) as e:
        _fail(str(e))
    typer.echo(token)


@app.command("unsign")
def unsign_command(
    token: Optional[str] = typer.Argument(None, help="Token, or '-' for stdin"),
    alg: Optional[str] = typer.Option(None, help="Signing algorithm"),
    key_file: Optional[Path] = typer.Option(None, help="PEM public key or HMAC secret file"),
    secret: Optional[str] = typer.Option(None, help="HMAC shared secret"),
    max_age: Optional[float] = typer.Option(None, help="Reject tokens older than this many seconds"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Config file path"),
) -> None:
    """Verify a token and print its payload as JSON."""
    try:
        config = load_config(config_path)
        alg_id = AlgorithmId.parse(alg) if alg else config.signing.alg
        key = resolve_key(
            alg_id,
            private=False,
            key_file=key_file,
            secret=secret,
            secret_env=config.secret_env,
        )
        if max_age is None:
            max_age = config.signing.max_age
        payload = unsign(_read_input(token), key, alg=alg_id, max_age=max_age)
    except (CompactSignError, OSError, ValueError) as e:
        _fail(str(e))

    if isinstance(payload, bytes):
        payload = payload.decode("utf-8", errors="replace")
    typer.echo(json.dumps(payload))


@app.command("algorithms")
def algorithms_command() -> None:
    """List supported algorithm identifiers."""
    for alg in AlgorithmId:
        kind = "hmac" if alg.is_symmetric else "asymmetric"
        typer.echo(f"{alg.value}\t{kind}")
