from __future__ import annotations

import importlib
from typing import Any

from ..config import KMSConfig
from ..exceptions import ConfigError
from .kms.base import KMSClient


def load_plugin(path: str, class_name: str) -> Any:
    """Dynamically load a plugin class given module path and class name.

    Example: load_plugin('release_guardian.plugins.kms.local', 'SoftwareKMS')
    """
    try:
        mod = importlib.import_module(path)
    except ImportError as exc:
        raise ConfigError(f"Cannot import plugin module {path!r}: {exc}") from exc
    try:
        return getattr(mod, class_name)
    except AttributeError:
        raise ConfigError(f"Plugin module {path!r} has no attribute {class_name!r}") from None


def load_kms(config: KMSConfig) -> KMSClient:
    """Build the KMS backend named by ``config.backend``."""
    backend = config.backend.strip()
    if backend == "software":
        from .kms.local import SoftwareKMS

        if config.software_key_file is None:
            raise ConfigError("kms.software_key_file is required for the software backend")
        if not config.software_key_file.is_file():
            raise ConfigError(f"kms.software_key_file {config.software_key_file} does not exist")
        return SoftwareKMS.from_pem_file(config.key_id, config.software_key_file)

    if backend == "command":
        from .kms.command import CommandKMS

        if not config.describe_cmd or not config.sign_cmd:
            raise ConfigError("kms.describe_cmd and kms.sign_cmd are required for the command backend")
        return CommandKMS(
            describe_cmd=config.describe_cmd,
            sign_cmd=config.sign_cmd,
            timeout_seconds=config.timeout_seconds,
        )

    if ":" in backend:
        module, _, class_name = backend.partition(":")
        factory = load_plugin(module, class_name)
        try:
            client = factory()
        except TypeError as exc:
            raise ConfigError(f"Cannot construct KMS plugin {backend}: {exc}") from exc
        if not isinstance(client, KMSClient):
            raise ConfigError(f"{backend} does not implement get_key_description/sign")
        return client

    raise ConfigError(f"Unsupported kms.backend={backend!r}; expected software|command|<module>:<Class>")
