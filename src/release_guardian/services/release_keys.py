# Generate per-release signing key pairs.
from __future__ import annotations

from typing import Tuple

from ..crypto.keys import EcKeyPair, encode_private, encode_public
from ..models import Curve

RELEASE_KEY_CURVE = Curve.P256


def generate_key_pair(curve: Curve | str = RELEASE_KEY_CURVE) -> EcKeyPair:
    return EcKeyPair.generate(curve)


def generate_release_key() -> Tuple[str, str]:
    """Create a fresh P-256 release key; returns ``(private_pem, public_pem)``.

    Nothing is written anywhere: persisting the private half is the caller's job.
    """
    pair = generate_key_pair()
    return encode_private(pair), encode_public(pair)


__all__ = ["RELEASE_KEY_CURVE", "generate_key_pair", "generate_release_key"]
