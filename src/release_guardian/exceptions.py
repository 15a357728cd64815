"""Central exception hierarchy"""
from __future__ import annotations


class ReleaseGuardianError(Exception):
    """Base exception for all failures"""


class UnsupportedCurve(ReleaseGuardianError):
    """Raised when a curve is outside the supported P-256/P-384/P-521 set"""

    def __init__(self, curve: object) -> None:
        self.curve = curve
        super().__init__(f"Curve {curve!r} is not supported")


class MalformedKey(ReleaseGuardianError):
    """Raised when key text or coordinate data cannot be parsed into a valid key"""


class MissingCoordinate(MalformedKey):
    """Raised when a KMS key description lacks a public coordinate"""

    def __init__(self, coordinate: str) -> None:
        self.coordinate = coordinate
        super().__init__(f"Key description is missing the {coordinate} coordinate")


class RemoteKMSError(ReleaseGuardianError):
    """Raised when a call into the key-management service fails"""

    def __init__(self, message: str, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"{message}: {cause}")


class RemoteSigningFailed(RemoteKMSError):
    """Raised when the root key could not sign a payload"""


class RootKeyMismatch(ReleaseGuardianError):
    """Raised when the pinned root key differs from the key held by the KMS"""


class ChainStateError(ReleaseGuardianError):
    """Raised when a verification session is driven out of order"""


class KMSError(ReleaseGuardianError):
    """Base for failures raised by KMS backends themselves"""


class KMSKeyNotFound(KMSError):
    """Raised when a key identifier cannot be resolved by the KMS"""


class KMSCommandError(KMSError):
    """Raised when an external KMS command fails or returns garbage"""


class ConfigError(ReleaseGuardianError):
    """Raised when configuration cannot be loaded or validated"""


__all__ = [
    "ReleaseGuardianError",
    "UnsupportedCurve",
    "MalformedKey",
    "MissingCoordinate",
    "RemoteKMSError",
    "RemoteSigningFailed",
    "RootKeyMismatch",
    "ChainStateError",
    "KMSError",
    "KMSKeyNotFound",
    "KMSCommandError",
    "ConfigError",
]
