# On-disk layout for release keys, endorsements and artifact signatures.
from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import structlog

from ..crypto.keys import RootPublicKey
from ..crypto.signer import sign_stream
from ..models import TrustState
from ..plugins.kms.base import KMSClient
from .chain import ChainVerifier, verify_artifact, verify_release_key
from .release_keys import generate_release_key
from .root_signer import sign_release_key

logger = structlog.get_logger(__name__)

SIGNATURE_SUFFIX = ".sig"
PUBLIC_KEY_SUFFIX = ".pub"
RELEASE_KEY_FILE = "relkeys.pub"


def with_suffix(path: Path, suffix: str) -> Path:
    """``foo.tar.gz`` + ``.sig`` -> ``foo.tar.gz.sig``"""
    return path.with_name(path.name + suffix)


def load_root_key(path: Path) -> RootPublicKey:
    return RootPublicKey.from_pem(Path(path).read_bytes())


def write_release_key_pair(output: Path, *, public_suffix: str = PUBLIC_KEY_SUFFIX) -> tuple[Path, Path]:
    """Write a fresh release key: private PEM at ``output`` (0600), public PEM beside it."""
    private_pem, public_pem = generate_release_key()
    output.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(output, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    # O_CREAT only applies the mode to new files
    os.chmod(output, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as handle:
        handle.write(private_pem)
    public_path = with_suffix(output, public_suffix)
    public_path.write_text(public_pem, encoding="utf-8")
    logger.info("release_key.written", private=str(output), public=str(public_path))
    return output, public_path


def sign_release_key_file(
    kms: KMSClient,
    credential: Any,
    public_key_file: Path,
    pinned_root_file: Path,
    *,
    key_id: str,
    signature_suffix: str = SIGNATURE_SUFFIX,
) -> Path:
    pinned = load_root_key(pinned_root_file)
    signature = sign_release_key(kms, credential, public_key_file.read_bytes(), pinned, key_id=key_id)
    sig_path = with_suffix(public_key_file, signature_suffix)
    sig_path.write_bytes(signature)
    logger.info("release_key.endorsed", public=str(public_key_file), signature=str(sig_path))
    return sig_path


def verify_release_key_file(
    root_key_file: Path,
    public_key_file: Path,
    *,
    signature_suffix: str = SIGNATURE_SUFFIX,
) -> bool:
    root = load_root_key(root_key_file)
    signature = with_suffix(public_key_file, signature_suffix).read_bytes()
    return verify_release_key(root, public_key_file.read_bytes(), signature)


def sign_release_file(
    private_key_file: Path,
    release_file: Path,
    *,
    signature_suffix: str = SIGNATURE_SUFFIX,
) -> Path:
    private_pem = private_key_file.read_bytes()
    with release_file.open("rb") as stream:
        signature = sign_stream(private_pem, stream)
    sig_path = with_suffix(release_file, signature_suffix)
    sig_path.write_bytes(signature)
    logger.info("release.signed", release=str(release_file), signature=str(sig_path))
    return sig_path


def verify_release_file(
    public_key_file: Path,
    release_file: Path,
    *,
    signature_suffix: str = SIGNATURE_SUFFIX,
) -> bool:
    signature = with_suffix(release_file, signature_suffix).read_bytes()
    with release_file.open("rb") as stream:
        return verify_artifact(public_key_file.read_bytes(), stream, signature)


def verify_release_directory(
    root: RootPublicKey,
    directory: Path,
    artifact_name: str,
    *,
    release_key_file: str = RELEASE_KEY_FILE,
    signature_suffix: str = SIGNATURE_SUFFIX,
) -> TrustState:
    """Verify a downloaded release: ``relkeys.pub`` (+ ``.sig``) and ``<artifact>`` (+ ``.sig``).

    Any missing file makes the release untrusted.
    """
    key_path = directory / release_key_file
    artifact = directory / artifact_name
    required = [
        key_path,
        with_suffix(key_path, signature_suffix),
        artifact,
        with_suffix(artifact, signature_suffix),
    ]
    missing = [str(p) for p in required if not p.is_file()]
    if missing:
        logger.warning("release.incomplete", missing=missing)
        return TrustState.UNTRUSTED

    verifier = ChainVerifier(root)
    with artifact.open("rb") as stream:
        return verifier.verify_chain(
            key_path.read_bytes(),
            required[1].read_bytes(),
            stream,
            required[3].read_bytes(),
        )


__all__ = [
    "PUBLIC_KEY_SUFFIX",
    "RELEASE_KEY_FILE",
    "SIGNATURE_SUFFIX",
    "load_root_key",
    "sign_release_file",
    "sign_release_key_file",
    "verify_release_directory",
    "verify_release_file",
    "verify_release_key_file",
    "with_suffix",
    "write_release_key_pair",
]
