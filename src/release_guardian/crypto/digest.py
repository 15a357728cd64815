"""Fixed curve -> digest and curve -> signature-scheme pairings.

A signature over P-384 with SHA-256 (or any other mismatch) weakens the
scheme, so both tables are closed over :class:`Curve` and there is no
fallback for names outside it.
"""
from __future__ import annotations

from typing import Dict

from cryptography.hazmat.primitives import hashes

from ..exceptions import UnsupportedCurve
from ..models import Curve

_DIGESTS: Dict[Curve, type[hashes.HashAlgorithm]] = {
    Curve.P256: hashes.SHA256,
    Curve.P384: hashes.SHA384,
    Curve.P521: hashes.SHA512,
}

# JWA identifiers, as expected by the KMS sign call
_SCHEMES: Dict[Curve, str] = {
    Curve.P256: "ES256",
    Curve.P384: "ES384",
    Curve.P521: "ES512",
}

_missing = [c.value for c in Curve if c not in _DIGESTS or c not in _SCHEMES]
if _missing:
    raise RuntimeError(f"Curve tables are incomplete for: {', '.join(_missing)}")


def digest_for_curve(curve: Curve | str) -> hashes.HashAlgorithm:
    return _DIGESTS[Curve.parse(curve)]()


def scheme_for_curve(curve: Curve | str) -> str:
    return _SCHEMES[Curve.parse(curve)]


def curve_for_scheme(scheme: str) -> Curve:
    for curve, tag in _SCHEMES.items():
        if tag == scheme:
            return curve
    raise UnsupportedCurve(scheme)


def digest_for_scheme(scheme: str) -> hashes.HashAlgorithm:
    return digest_for_curve(curve_for_scheme(scheme))


def hash_bytes(algorithm: hashes.HashAlgorithm, payload: bytes) -> bytes:
    h = hashes.Hash(algorithm)
    h.update(payload)
    return h.finalize()


def compute_digest(curve: Curve | str, payload: bytes) -> bytes:
    """Digest ``payload`` with the algorithm mandated for ``curve``"""
    return hash_bytes(digest_for_curve(curve), payload)


__all__ = [
    "digest_for_curve",
    "scheme_for_curve",
    "curve_for_scheme",
    "digest_for_scheme",
    "hash_bytes",
    "compute_digest",
]
