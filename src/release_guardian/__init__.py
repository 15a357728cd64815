"""Release Guardian: KMS-rooted signing and verification of software releases."""
from __future__ import annotations

__version__ = "0.3.0"

from .crypto.keys import EcKeyPair, RootPublicKey
from .exceptions import (
    MalformedKey,
    MissingCoordinate,
    ReleaseGuardianError,
    RemoteSigningFailed,
    RootKeyMismatch,
    UnsupportedCurve,
)
from .models import Curve, KeyDescription, TrustState

__all__ = [
    "__version__",
    "Curve",
    "EcKeyPair",
    "KeyDescription",
    "MalformedKey",
    "MissingCoordinate",
    "ReleaseGuardianError",
    "RemoteSigningFailed",
    "RootKeyMismatch",
    "RootPublicKey",
    "TrustState",
    "UnsupportedCurve",
]
