"""EC key codec: PEM text, KMS coordinates and the root public key value type.

Public keys travel as SubjectPublicKeyInfo PEM (``PUBLIC KEY``), private keys
as unencrypted SEC1 PEM (``EC PRIVATE KEY``). The codec never protects private
material at rest; whoever writes it out owns that.
"""
from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Dict, Optional, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from ..exceptions import MalformedKey, MissingCoordinate, UnsupportedCurve
from ..models import Curve, KeyDescription

_CURVES: Dict[Curve, type[ec.EllipticCurve]] = {
    Curve.P256: ec.SECP256R1,
    Curve.P384: ec.SECP384R1,
    Curve.P521: ec.SECP521R1,
}

_EC_KEY_TYPES = {"EC", "EC-HSM"}


def curve_instance(curve: Curve | str) -> ec.EllipticCurve:
    return _CURVES[Curve.parse(curve)]()


def coordinate_size(curve: Curve | str) -> int:
    """Byte length of one coordinate (and of r or s in a signature)"""
    return (curve_instance(curve).key_size + 7) // 8


def curve_of(key: ec.EllipticCurvePublicKey | ec.EllipticCurvePrivateKey) -> Curve:
    return Curve.parse(key.curve.name)


class EcKeyPair:
    """EC key pair on one supported curve; the private half is optional."""

    def __init__(
        self,
        private: ec.EllipticCurvePrivateKey | None = None,
        public: ec.EllipticCurvePublicKey | None = None,
    ) -> None:
        if private is None and public is None:
            raise MalformedKey("At least one of private or public key is required")
        self._priv = private
        self._pub = public or private.public_key()  # type: ignore[union-attr]

    @staticmethod
    def generate(curve: Curve | str = Curve.P256) -> "EcKeyPair":
        return EcKeyPair(private=ec.generate_private_key(curve_instance(curve)))

    @property
    def curve(self) -> Curve:
        return curve_of(self._pub)

    @property
    def public_key(self) -> ec.EllipticCurvePublicKey:
        return self._pub

    @property
    def private_key(self) -> ec.EllipticCurvePrivateKey:
        if self._priv is None:
            raise MalformedKey("Key pair carries no private key material")
        return self._priv

    @property
    def has_private(self) -> bool:
        return self._priv is not None

    def public_pem(self) -> str:
        return encode_public(self)

    def private_pem(self) -> str:
        return encode_private(self)


KeyLike = Union[EcKeyPair, ec.EllipticCurvePublicKey, ec.EllipticCurvePrivateKey]


def _public_of(key: KeyLike) -> ec.EllipticCurvePublicKey:
    if isinstance(key, EcKeyPair):
        return key.public_key
    if isinstance(key, ec.EllipticCurvePrivateKey):
        return key.public_key()
    if isinstance(key, ec.EllipticCurvePublicKey):
        return key
    raise MalformedKey(f"Expected an EC key, got {type(key).__name__}")


def encode_public(key: KeyLike) -> str:
    return _public_of(key).public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")


def encode_private(key: EcKeyPair | ec.EllipticCurvePrivateKey) -> str:
    priv = key.private_key if isinstance(key, EcKeyPair) else key
    if not isinstance(priv, ec.EllipticCurvePrivateKey):
        raise MalformedKey(f"Expected an EC private key, got {type(priv).__name__}")
    return priv.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


def canonical_public_bytes(key: KeyLike) -> bytes:
    """SubjectPublicKeyInfo DER, the form used for key equality"""
    return _public_of(key).public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def decode(text: str | bytes) -> EcKeyPair:
    """Parse a public or private PEM key into an :class:`EcKeyPair`."""
    data = text.encode("utf-8") if isinstance(text, str) else bytes(text)
    try:
        if b"PRIVATE KEY-----" in data:
            key = serialization.load_pem_private_key(data, password=None)
        else:
            key = serialization.load_pem_public_key(data)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise MalformedKey(f"Unable to parse PEM key: {exc}") from exc

    if isinstance(key, ec.EllipticCurvePrivateKey):
        pair = EcKeyPair(private=key)
    elif isinstance(key, ec.EllipticCurvePublicKey):
        pair = EcKeyPair(public=key)
    else:
        raise MalformedKey(f"Expected an EC key, got {type(key).__name__}")

    try:
        pair.curve
    except UnsupportedCurve as exc:
        raise MalformedKey(f"Key uses unsupported curve {exc.curve!r}") from exc
    return pair


def from_coordinates(curve: Curve | str, x: Optional[bytes], y: Optional[bytes]) -> ec.EllipticCurvePublicKey:
    """Build a public key from the raw big-endian coordinates a KMS reports."""
    parsed = Curve.parse(curve)
    if not x:
        raise MissingCoordinate("x")
    if not y:
        raise MissingCoordinate("y")
    size = coordinate_size(parsed)
    if len(x) > size or len(y) > size:
        raise MalformedKey(f"Coordinate longer than {size} bytes for {parsed.value}")
    numbers = ec.EllipticCurvePublicNumbers(
        int.from_bytes(x, "big"),
        int.from_bytes(y, "big"),
        curve_instance(parsed),
    )
    try:
        return numbers.public_key()
    except ValueError as exc:
        raise MalformedKey(f"Point is not on {parsed.value}") from exc


@dataclass(frozen=True, slots=True)
class RootPublicKey:
    """Root public key held as its canonical SubjectPublicKeyInfo DER.

    Two instances are equal exactly when their DER encodings are byte-equal,
    whether one came from the KMS and the other from a pinned PEM file.
    ``public_key()`` hands out a fresh library object for each use.
    """

    spki_der: bytes

    @classmethod
    def from_key(cls, key: KeyLike) -> "RootPublicKey":
        return cls(canonical_public_bytes(key))

    @classmethod
    def from_pem(cls, text: str | bytes) -> "RootPublicKey":
        return cls.from_key(decode(text))

    @classmethod
    def from_coordinates(cls, curve: Curve | str, x: Optional[bytes], y: Optional[bytes]) -> "RootPublicKey":
        return cls.from_key(from_coordinates(curve, x, y))

    @classmethod
    def from_description(cls, description: KeyDescription) -> "RootPublicKey":
        if description.key_type.upper() not in _EC_KEY_TYPES:
            raise MalformedKey(f"Key {description.key_id} is not an EC key ({description.key_type})")
        return cls.from_coordinates(description.curve, description.x, description.y)

    def public_key(self) -> ec.EllipticCurvePublicKey:
        try:
            key = serialization.load_der_public_key(self.spki_der)
        except (ValueError, UnsupportedAlgorithm) as exc:
            raise MalformedKey("Root key bytes are not a valid public key") from exc
        if not isinstance(key, ec.EllipticCurvePublicKey):
            raise MalformedKey(f"Root key is not an EC key ({type(key).__name__})")
        return key

    @property
    def curve(self) -> Curve:
        return curve_of(self.public_key())

    def to_pem(self) -> str:
        return encode_public(self.public_key())

    def fingerprint(self) -> str:
        return hashlib.sha256(self.spki_der).hexdigest()

    def __repr__(self) -> str:
        return f"RootPublicKey(sha256={self.fingerprint()[:16]})"


__all__ = [
    "EcKeyPair",
    "RootPublicKey",
    "canonical_public_bytes",
    "coordinate_size",
    "curve_instance",
    "curve_of",
    "decode",
    "encode_private",
    "encode_public",
    "from_coordinates",
]
