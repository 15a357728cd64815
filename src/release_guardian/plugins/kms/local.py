"""In-process KMS backed by software keys.

Useful for tests, offline rehearsals of a signing ceremony and development
setups. It honours the same contract as a real KMS: it describes keys by
curve and coordinates and signs caller-supplied digests, returning raw
``r || s`` signatures.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Mapping

import structlog

from ...crypto.digest import curve_for_scheme, digest_for_scheme
from ...crypto.keys import EcKeyPair, coordinate_size, decode
from ...crypto.signer import EcdsaSigner
from ...exceptions import KMSError, KMSKeyNotFound, UnsupportedCurve
from ...models import Curve, KeyDescription

logger = structlog.get_logger(__name__)


class SoftwareKMS:
    def __init__(self, keys: Mapping[str, EcKeyPair] | None = None) -> None:
        self._keys: Dict[str, EcKeyPair] = dict(keys or {})

    @classmethod
    def generate(cls, key_id: str, curve: Curve | str = Curve.P256) -> "SoftwareKMS":
        return cls({key_id: EcKeyPair.generate(curve)})

    @classmethod
    def from_pem_file(cls, key_id: str, path: Path) -> "SoftwareKMS":
        pair = decode(Path(path).read_text(encoding="utf-8"))
        if not pair.has_private:
            raise KMSError(f"{path} holds no private key; the software KMS needs one to sign")
        return cls({key_id: pair})

    def add_key(self, key_id: str, pair: EcKeyPair) -> None:
        self._keys[key_id] = pair

    def _lookup(self, key_id: str) -> EcKeyPair:
        try:
            return self._keys[key_id]
        except KeyError:
            raise KMSKeyNotFound(f"Key {key_id!r} not found") from None

    def get_key_description(self, credential: Any, key_id: str) -> KeyDescription:
        pair = self._lookup(key_id)
        numbers = pair.public_key.public_numbers()
        size = coordinate_size(pair.curve)
        return KeyDescription(
            key_id=key_id,
            curve=pair.curve.value,
            x=numbers.x.to_bytes(size, "big"),
            y=numbers.y.to_bytes(size, "big"),
        )

    def sign(self, credential: Any, key_id: str, digest: bytes, scheme: str) -> bytes:
        pair = self._lookup(key_id)
        try:
            scheme_curve = curve_for_scheme(scheme)
        except UnsupportedCurve as exc:
            raise KMSError(f"Unknown signature scheme {scheme!r}") from exc
        if scheme_curve is not pair.curve:
            raise KMSError(f"Scheme {scheme} cannot be used with a {pair.curve.value} key")
        logger.debug("kms.software.sign", key_id=key_id, scheme=scheme)
        try:
            return EcdsaSigner(pair, algorithm=digest_for_scheme(scheme)).sign_digest(digest)
        except ValueError as exc:
            raise KMSError(f"Digest does not fit scheme {scheme}: {exc}") from exc


__all__ = ["SoftwareKMS"]
