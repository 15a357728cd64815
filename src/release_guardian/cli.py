# CLI implementation using Typer for key generation, root endorsement and release signing.
from __future__ import annotations

import base64
import contextlib
from pathlib import Path
from typing import Iterator, Optional

import typer

from . import __version__
from .config import AppConfig, dump_default_config, load_config
from .exceptions import ConfigError, ReleaseGuardianError
from .logging import configure_logging
from .paths import default_config_path
from .plugins.kms.base import EnvironmentCredential
from .plugins.manager import load_kms
from .services import release_files
from .services.root_signer import fetch_root_key

app = typer.Typer(help="Release Guardian: KMS-rooted release signing", no_args_is_help=True)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"release-guardian {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", metavar="PATH", help="Config file (YAML)"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="critical|error|warning|info|debug"),
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True),
) -> None:
    try:
        ctx.obj = load_config(config)
    except ConfigError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)
    configure_logging(log_level or ctx.obj.logging.normalized_level())


@contextlib.contextmanager
def _reported() -> Iterator[None]:
    try:
        yield
    except (ReleaseGuardianError, OSError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)


def _root_key_path(explicit: Optional[Path], config: AppConfig) -> Path:
    path = explicit or config.trust.pinned_root_key
    if path is None:
        raise ConfigError("No root key file given and trust.pinned_root_key is not configured")
    return path


def _credential(config: AppConfig) -> EnvironmentCredential:
    return EnvironmentCredential.from_environ(config.kms.credential_env)


@app.command("get-root-key")
def get_root_key(ctx: typer.Context) -> None:
    """Fetch the root key from the KMS and print it in PEM format"""
    config: AppConfig = ctx.obj
    with _reported():
        typer.echo(f"Fetching key {config.kms.key_id} via {config.kms.backend} backend", err=True)
        root = fetch_root_key(load_kms(config.kms), _credential(config), key_id=config.kms.key_id)
        typer.echo(root.to_pem(), nl=False)


@app.command("make-keys")
def make_keys(
    ctx: typer.Context,
    output_file: Path = typer.Argument(..., help="File to write the private key to; the public key gets '.pub' appended"),
) -> None:
    """Generate a new release key pair in PEM format"""
    config: AppConfig = ctx.obj
    with _reported():
        private_path, public_path = release_files.write_release_key_pair(
            output_file, public_suffix=config.layout.public_key_suffix
        )
    typer.echo(f"Private key written to {private_path}")
    typer.echo(f"Public key written to {public_path}")


@app.command("sign-keys")
def sign_keys(
    ctx: typer.Context,
    pub_key_file: Path = typer.Argument(..., exists=True, readable=True, help="Release public key to endorse"),
    root_key_file: Optional[Path] = typer.Argument(None, help="Pinned root public key (default: trust.pinned_root_key)"),
) -> None:
    """Sign a release public key with the KMS root key after checking it matches the pinned root"""
    config: AppConfig = ctx.obj
    with _reported():
        sig_path = release_files.sign_release_key_file(
            load_kms(config.kms),
            _credential(config),
            pub_key_file,
            _root_key_path(root_key_file, config),
            key_id=config.kms.key_id,
            signature_suffix=config.layout.signature_suffix,
        )
    typer.echo(f"Signature written to {sig_path}")


@app.command("verify-release-key")
def verify_release_key(
    ctx: typer.Context,
    root_key_file: Path = typer.Argument(..., exists=True, readable=True),
    pub_key_file: Path = typer.Argument(..., exists=True, readable=True),
) -> None:
    """Verify a release public key's signature against the root key"""
    config: AppConfig = ctx.obj
    suffix = config.layout.signature_suffix
    with _reported():
        sig = release_files.with_suffix(pub_key_file, suffix).read_bytes()
        typer.echo("Public key:")
        typer.echo(pub_key_file.read_bytes().decode("utf-8", errors="replace"))
        typer.echo("Signature bytes:")
        typer.echo(base64.b64encode(sig).decode("ascii"))
        ok = release_files.verify_release_key_file(root_key_file, pub_key_file, signature_suffix=suffix)
    typer.echo("Signature OK" if ok else "Signature verification FAILED")
    raise typer.Exit(code=0 if ok else 1)


@app.command("sign-release")
def sign_release(
    ctx: typer.Context,
    priv_key_file: Path = typer.Argument(..., exists=True, readable=True),
    release_file: Path = typer.Argument(..., exists=True, readable=True),
) -> None:
    """Sign a release file with a release private key"""
    config: AppConfig = ctx.obj
    with _reported():
        sig_path = release_files.sign_release_file(
            priv_key_file, release_file, signature_suffix=config.layout.signature_suffix
        )
    typer.echo(f"Release file signed successfully. Signature written to {sig_path}")


@app.command("verify-release")
def verify_release(
    ctx: typer.Context,
    pub_key_file: Path = typer.Argument(..., exists=True, readable=True),
    release_file: Path = typer.Argument(..., exists=True, readable=True),
) -> None:
    """Verify a release file against a release public key"""
    config: AppConfig = ctx.obj
    with _reported():
        ok = release_files.verify_release_file(
            pub_key_file, release_file, signature_suffix=config.layout.signature_suffix
        )
    typer.echo("Release file OK." if ok else "Release file verification FAILED.")
    raise typer.Exit(code=0 if ok else 1)


@app.command("verify-bundle")
def verify_bundle(
    ctx: typer.Context,
    directory: Path = typer.Argument(..., exists=True, file_okay=False, help="Directory holding the downloaded release"),
    artifact: str = typer.Argument(..., help="Artifact file name inside DIRECTORY"),
    root_key_file: Optional[Path] = typer.Option(None, "--root-key", help="Pinned root public key"),
) -> None:
    """Verify the full chain: root -> release key -> artifact"""
    config: AppConfig = ctx.obj
    with _reported():
        root = release_files.load_root_key(_root_key_path(root_key_file, config))
        state = release_files.verify_release_directory(
            root,
            directory,
            artifact,
            release_key_file=config.layout.release_key_file,
            signature_suffix=config.layout.signature_suffix,
        )
    typer.echo(f"{artifact}: {state.value}")
    raise typer.Exit(code=0 if state.is_trusted else 1)


@app.command("init-config")
def init_config(
    path: Optional[Path] = typer.Argument(None, help="Where to write the config (default: user config dir)"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
) -> None:
    """Write the default configuration as YAML"""
    target = path or default_config_path()
    if target.exists() and not force:
        typer.echo(f"{target} already exists (use --force to overwrite)", err=True)
        raise typer.Exit(code=1)
    dump_default_config(target)
    typer.echo(f"Wrote default config to {target}")


if __name__ == "__main__":
    app()
