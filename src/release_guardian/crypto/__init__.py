"""Curve tables, key codec and local ECDSA signing."""
from .digest import compute_digest, digest_for_curve, scheme_for_curve
from .keys import EcKeyPair, RootPublicKey, decode, encode_private, encode_public, from_coordinates
from .signer import EcdsaSigner, sign_bytes, sign_stream, verify_bytes, verify_stream

__all__ = [
    "EcKeyPair",
    "EcdsaSigner",
    "RootPublicKey",
    "compute_digest",
    "decode",
    "digest_for_curve",
    "encode_private",
    "encode_public",
    "from_coordinates",
    "scheme_for_curve",
    "sign_bytes",
    "sign_stream",
    "verify_bytes",
    "verify_stream",
]
