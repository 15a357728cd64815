"""Shared domain models used across Release Guardian."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .exceptions import UnsupportedCurve


class Curve(str, Enum):
    """The closed set of NIST curves a root or release key may live on."""

    P256 = "P-256"
    P384 = "P-384"
    P521 = "P-521"

    @classmethod
    def parse(cls, name: "Curve | str") -> "Curve":
        if isinstance(name, Curve):
            return name
        if not isinstance(name, str):
            raise UnsupportedCurve(name)
        normalized = name.strip().upper()
        for curve in cls:
            if normalized == curve.value:
                return curve
        alias = _OPENSSL_ALIASES.get(name.strip().lower())
        if alias is None:
            raise UnsupportedCurve(name)
        return alias


_OPENSSL_ALIASES = {
    "secp256r1": Curve.P256,
    "prime256v1": Curve.P256,
    "secp384r1": Curve.P384,
    "secp521r1": Curve.P521,
}


@dataclass(frozen=True, slots=True)
class KeyDescription:
    """Public description of a KMS-held key (JWK-style)"""
    key_id: str
    curve: str
    x: Optional[bytes]
    y: Optional[bytes]
    key_type: str = "EC"


class TrustState(str, Enum):
    START = "START"
    ROOT_KEY_OBTAINED = "ROOT_KEY_OBTAINED"
    RELEASE_KEY_VERIFIED = "RELEASE_KEY_VERIFIED"
    TRUSTED = "TRUSTED"
    UNTRUSTED = "UNTRUSTED"

    @property
    def is_trusted(self) -> bool:
        return self is TrustState.TRUSTED


__all__ = ["Curve", "KeyDescription", "TrustState"]
