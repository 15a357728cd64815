# ECDSA signing and verification over byte strings and file streams.
from __future__ import annotations

from typing import BinaryIO, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    Prehashed,
    decode_dss_signature,
    encode_dss_signature,
)

from .digest import hash_bytes
from .keys import EcKeyPair, RootPublicKey, coordinate_size, decode

CHUNK_SIZE = 1 << 20

KeyInput = Union[EcKeyPair, RootPublicKey, ec.EllipticCurvePrivateKey, ec.EllipticCurvePublicKey, str, bytes]


def artifact_hash() -> hashes.HashAlgorithm:
    """Release artifacts and key endorsements are always hashed with SHA-256"""
    return hashes.SHA256()


def _as_key_pair(key: KeyInput) -> EcKeyPair:
    if isinstance(key, EcKeyPair):
        return key
    if isinstance(key, RootPublicKey):
        return EcKeyPair(public=key.public_key())
    if isinstance(key, ec.EllipticCurvePrivateKey):
        return EcKeyPair(private=key)
    if isinstance(key, ec.EllipticCurvePublicKey):
        return EcKeyPair(public=key)
    return decode(key)


def to_p1363(der_signature: bytes, size: int) -> bytes:
    r, s = decode_dss_signature(der_signature)
    return r.to_bytes(size, "big") + s.to_bytes(size, "big")


def from_p1363(signature: bytes, size: int) -> bytes | None:
    if len(signature) != 2 * size:
        return None
    r = int.from_bytes(signature[:size], "big")
    s = int.from_bytes(signature[size:], "big")
    return encode_dss_signature(r, s)


class EcdsaSigner:
    """Thin wrapper around ECDSA that speaks fixed-width ``r || s`` signatures"""

    def __init__(self, key: KeyInput, *, algorithm: hashes.HashAlgorithm | None = None) -> None:
        self._pair = _as_key_pair(key)
        self._algorithm = algorithm or artifact_hash()
        self._size = coordinate_size(self._pair.curve)

    @property
    def algorithm(self) -> hashes.HashAlgorithm:
        return self._algorithm

    def _hash_stream(self, stream: BinaryIO) -> bytes:
        h = hashes.Hash(self._algorithm)
        for chunk in iter(lambda: stream.read(CHUNK_SIZE), b""):
            h.update(chunk)
        return h.finalize()

    def sign_digest(self, digest: bytes) -> bytes:
        der = self._pair.private_key.sign(digest, ec.ECDSA(Prehashed(self._algorithm)))
        return to_p1363(der, self._size)

    def verify_digest(self, digest: bytes, signature: bytes) -> bool:
        der = from_p1363(bytes(signature), self._size)
        if der is None:
            return False
        try:
            self._pair.public_key.verify(der, digest, ec.ECDSA(Prehashed(self._algorithm)))
        except (InvalidSignature, ValueError):
            return False
        return True

    def sign(self, *, message: bytes) -> bytes:
        return self.sign_digest(hash_bytes(self._algorithm, message))

    def verify(self, *, message: bytes, signature: bytes) -> bool:
        return self.verify_digest(hash_bytes(self._algorithm, message), signature)

    def sign_stream(self, stream: BinaryIO) -> bytes:
        return self.sign_digest(self._hash_stream(stream))

    def verify_stream(self, stream: BinaryIO, signature: bytes) -> bool:
        return self.verify_digest(self._hash_stream(stream), signature)


def sign_stream(private_key_text: str | bytes, stream: BinaryIO) -> bytes:
    return EcdsaSigner(private_key_text).sign_stream(stream)


def verify_stream(public_key_text: str | bytes, stream: BinaryIO, signature: bytes) -> bool:
    return EcdsaSigner(public_key_text).verify_stream(stream, signature)


def sign_bytes(private_key: KeyInput, payload: bytes) -> bytes:
    return EcdsaSigner(private_key).sign(message=payload)


def verify_bytes(
    public_key: KeyInput,
    payload: bytes,
    signature: bytes,
    *,
    algorithm: hashes.HashAlgorithm | None = None,
) -> bool:
    """Check ``signature`` over raw ``payload`` bytes (SHA-256 unless told otherwise)."""
    return EcdsaSigner(public_key, algorithm=algorithm).verify(message=payload, signature=signature)


__all__ = [
    "CHUNK_SIZE",
    "EcdsaSigner",
    "artifact_hash",
    "from_p1363",
    "sign_bytes",
    "sign_stream",
    "to_p1363",
    "verify_bytes",
    "verify_stream",
]
