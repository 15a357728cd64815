"""Root-key operations that go through the custodial KMS.

The root private key never leaves the KMS. This module resolves the root
key's curve, digests payloads locally with the digest mandated for that
curve and asks the KMS to sign the digest. KMS failures are wrapped exactly
once and never retried here.
"""
from __future__ import annotations

from typing import Any

import structlog

from ..crypto.digest import compute_digest, scheme_for_curve
from ..crypto.keys import RootPublicKey
from ..exceptions import RemoteKMSError, RemoteSigningFailed, RootKeyMismatch
from ..models import Curve, KeyDescription
from ..plugins.kms.base import KMSClient

logger = structlog.get_logger(__name__)


def _describe(kms: KMSClient, credential: Any, key_id: str, error: type[RemoteKMSError]) -> KeyDescription:
    try:
        return kms.get_key_description(credential, key_id)
    except Exception as exc:
        logger.error("root.describe.failed", key_id=key_id, error=str(exc))
        raise error(f"Could not describe root key {key_id!r}", exc) from exc


def fetch_root_key(kms: KMSClient, credential: Any, *, key_id: str) -> RootPublicKey:
    """Fetch the live root public key from the KMS."""
    description = _describe(kms, credential, key_id, RemoteKMSError)
    root = RootPublicKey.from_description(description)
    logger.info("root.fetched", key_id=key_id, fingerprint=root.fingerprint())
    return root


def _sign_described(
    kms: KMSClient, credential: Any, description: KeyDescription, payload: bytes, *, key_id: str
) -> bytes:
    curve = Curve.parse(description.curve)
    digest = compute_digest(curve, bytes(payload))
    scheme = scheme_for_curve(curve)
    remote_id = description.key_id or key_id

    logger.info("root.sign.request", key_id=remote_id, scheme=scheme, payload_bytes=len(payload))
    try:
        signature = kms.sign(credential, remote_id, digest, scheme)
    except Exception as exc:
        logger.error("root.sign.failed", key_id=remote_id, error=str(exc))
        raise RemoteSigningFailed(f"Root key {remote_id!r} failed to sign", exc) from exc
    return bytes(signature)


def sign_with_root(kms: KMSClient, credential: Any, payload: bytes, *, key_id: str) -> bytes:
    """Have the KMS root key sign ``payload``; returns the raw signature bytes."""
    description = _describe(kms, credential, key_id, RemoteSigningFailed)
    return _sign_described(kms, credential, description, payload, key_id=key_id)


def sign_release_key(
    kms: KMSClient,
    credential: Any,
    release_public_key: bytes | str,
    pinned_root: RootPublicKey,
    *,
    key_id: str,
) -> bytes:
    """Endorse a release public key, refusing if the KMS key is not the pinned root.

    ``release_public_key`` is signed exactly as given (the bytes of the
    ``.pub`` file), which is also what verifiers check against. The root key is
    described once; signing uses the same description the pin was checked
    against.
    """
    description = _describe(kms, credential, key_id, RemoteKMSError)
    live_root = RootPublicKey.from_description(description)
    if live_root != pinned_root:
        logger.warning(
            "root.mismatch",
            key_id=key_id,
            live=live_root.fingerprint(),
            pinned=pinned_root.fingerprint(),
        )
        raise RootKeyMismatch(
            f"KMS key {key_id!r} ({live_root.fingerprint()[:16]}) does not match the pinned root key "
            f"({pinned_root.fingerprint()[:16]})"
        )
    payload = release_public_key.encode("utf-8") if isinstance(release_public_key, str) else bytes(release_public_key)
    return _sign_described(kms, credential, description, payload, key_id=key_id)


__all__ = ["fetch_root_key", "sign_release_key", "sign_with_root"]
