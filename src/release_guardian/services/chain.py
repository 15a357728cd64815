"""Chain-of-trust verification: root -> release key -> artifact.

An artifact is trusted only when both gates pass against the same release
key: the release public key carries a valid root signature, and the artifact
carries a valid signature by that release key. The two checks stay separate
so a caller can endorse a release key once and then verify many artifacts.
"""
from __future__ import annotations

from typing import BinaryIO

import structlog

from ..crypto.keys import RootPublicKey
from ..crypto.signer import EcdsaSigner, KeyInput, verify_bytes, verify_stream
from ..exceptions import ChainStateError
from ..models import TrustState

logger = structlog.get_logger(__name__)


def _as_bytes(value: bytes | str) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else bytes(value)


def verify_release_key(root: RootPublicKey | KeyInput, release_public_key: bytes | str, signature: bytes) -> bool:
    """Check the root's signature over the release public key's bytes."""
    ok = verify_bytes(root, _as_bytes(release_public_key), signature)
    logger.info("chain.release_key.checked", endorsed=ok)
    return ok


def verify_artifact(release_public_key: bytes | str, artifact_stream: BinaryIO, signature: bytes) -> bool:
    """Check the release key's signature over an artifact stream."""
    ok = verify_stream(release_public_key, artifact_stream, signature)
    logger.info("chain.artifact.checked", signed=ok)
    return ok


class VerificationSession:
    """Stateful walk through the chain for one root key and one release key.

    ``START -> ROOT_KEY_OBTAINED -> RELEASE_KEY_VERIFIED``, or ``UNTRUSTED``
    when the release key is not endorsed. Once the release key is verified,
    any number of artifacts can be checked against it; each check returns
    ``TRUSTED`` or ``UNTRUSTED`` without moving the session.
    """

    def __init__(self, root: RootPublicKey | None = None) -> None:
        self._state = TrustState.START
        self._root: RootPublicKey | None = None
        self._release_signer: EcdsaSigner | None = None
        if root is not None:
            self.use_root(root)

    @property
    def state(self) -> TrustState:
        return self._state

    @property
    def root(self) -> RootPublicKey | None:
        return self._root

    def use_root(self, root: RootPublicKey) -> TrustState:
        if self._state is not TrustState.START:
            raise ChainStateError(f"Root key already set (state {self._state.value})")
        self._root = root
        self._state = TrustState.ROOT_KEY_OBTAINED
        return self._state

    def verify_release_key(self, release_public_key: bytes | str, signature: bytes) -> TrustState:
        if self._state is not TrustState.ROOT_KEY_OBTAINED:
            raise ChainStateError(f"Cannot verify a release key in state {self._state.value}")
        assert self._root is not None
        if verify_release_key(self._root, release_public_key, signature):
            self._release_signer = EcdsaSigner(release_public_key)
            self._state = TrustState.RELEASE_KEY_VERIFIED
        else:
            self._state = TrustState.UNTRUSTED
        return self._state

    def verify_artifact(self, artifact_stream: BinaryIO, signature: bytes) -> TrustState:
        """Check an artifact against the endorsed release key."""
        if self._state is not TrustState.RELEASE_KEY_VERIFIED:
            raise ChainStateError(f"Release key is not verified (state {self._state.value})")
        assert self._release_signer is not None
        ok = self._release_signer.verify_stream(artifact_stream, signature)
        logger.info("chain.artifact.checked", signed=ok)
        return TrustState.TRUSTED if ok else TrustState.UNTRUSTED


class ChainVerifier:
    """Chain checks bound to one root public key."""

    def __init__(self, root: RootPublicKey) -> None:
        self.root = root

    def verify_release_key(self, release_public_key: bytes | str, signature: bytes) -> bool:
        return verify_release_key(self.root, release_public_key, signature)

    def verify_artifact(self, release_public_key: bytes | str, artifact_stream: BinaryIO, signature: bytes) -> bool:
        return verify_artifact(release_public_key, artifact_stream, signature)

    def session(self) -> VerificationSession:
        return VerificationSession(self.root)

    def verify_chain(
        self,
        release_public_key: bytes | str,
        release_key_signature: bytes,
        artifact_stream: BinaryIO,
        artifact_signature: bytes,
    ) -> TrustState:
        session = self.session()
        if session.verify_release_key(release_public_key, release_key_signature) is not TrustState.RELEASE_KEY_VERIFIED:
            logger.warning("chain.untrusted", gate="release_key", root=self.root.fingerprint()[:16])
            return TrustState.UNTRUSTED
        result = session.verify_artifact(artifact_stream, artifact_signature)
        if not result.is_trusted:
            logger.warning("chain.untrusted", gate="artifact", root=self.root.fingerprint()[:16])
        return result


__all__ = [
    "ChainVerifier",
    "VerificationSession",
    "verify_artifact",
    "verify_release_key",
]
