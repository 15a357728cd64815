"""Release-key generation, root endorsement and chain verification."""
from .chain import ChainVerifier, VerificationSession, verify_artifact, verify_release_key
from .release_keys import generate_release_key
from .root_signer import fetch_root_key, sign_release_key, sign_with_root

__all__ = [
    "ChainVerifier",
    "VerificationSession",
    "fetch_root_key",
    "generate_release_key",
    "sign_release_key",
    "sign_with_root",
    "verify_artifact",
    "verify_release_key",
]
