"""KMS capability interface and bundled backends."""
from .base import EnvironmentCredential, KMSClient
from .command import CommandKMS
from .local import SoftwareKMS

__all__ = ["CommandKMS", "EnvironmentCredential", "KMSClient", "SoftwareKMS"]
