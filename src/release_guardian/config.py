"""Configuration loading utilities for Release Guardian."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigError
from .paths import PROJECT_CONFIG_DIR, default_config_path


class KMSConfig(BaseModel):
    backend: str = Field(default="command", description="software|command|<module>:<Class>")
    key_id: str = Field(default="release-root", description="Identifier of the root key inside the KMS")
    describe_cmd: str = Field(default="", description="Command printing the root key as JWK JSON")
    sign_cmd: str = Field(default="", description="Command signing a base64 digest read from stdin")
    timeout_seconds: float = Field(default=30.0, gt=0)
    software_key_file: Optional[Path] = Field(default=None, description="Root private key PEM for the software backend")
    credential_env: List[str] = Field(
        default_factory=list,
        description="Environment variables forwarded to the KMS as its credential",
    )

    @field_validator("key_id")
    @classmethod
    def _validate_key_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("key_id must not be empty")
        return value


class TrustConfig(BaseModel):
    pinned_root_key: Optional[Path] = Field(default=None, description="PEM copy of the root public key")


class LayoutConfig(BaseModel):
    signature_suffix: str = Field(default=".sig")
    public_key_suffix: str = Field(default=".pub")
    release_key_file: str = Field(default="relkeys.pub")

    @field_validator("signature_suffix", "public_key_suffix")
    @classmethod
    def _validate_suffix(cls, value: str) -> str:
        if not value.startswith(".") or len(value) < 2:
            raise ValueError("suffix must start with '.'")
        return value

    @field_validator("release_key_file")
    @classmethod
    def _validate_file_name(cls, value: str) -> str:
        if not value or "/" in value or "\\" in value:
            raise ValueError("release_key_file must be a bare file name")
        return value


class LoggingConfig(BaseModel):
    level: str = Field(default="WARNING", description="Logging verbosity level")

    def normalized_level(self) -> str:
        return self.level.upper()


class AppConfig(BaseModel):
    kms: KMSConfig = Field(default_factory=KMSConfig)
    trust: TrustConfig = Field(default_factory=TrustConfig)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


DEFAULT_CONFIG = AppConfig()


def config_search_paths(explicit: Optional[Path] = None) -> Iterable[Path]:
    if explicit:
        yield explicit
    yield Path.cwd() / PROJECT_CONFIG_DIR / "config.yaml"
    yield default_config_path()


def load_config(path: Optional[Path] = None) -> AppConfig:
    if path is not None and not path.is_file():
        raise ConfigError(f"Config file {path} does not exist")
    for candidate in config_search_paths(path):
        if candidate.is_file():
            try:
                with candidate.open("r", encoding="utf-8") as handle:
                    data = yaml.safe_load(handle) or {}
                return AppConfig.model_validate(data)
            except (yaml.YAMLError, UnicodeDecodeError) as exc:
                raise ConfigError(f"Config file {candidate} is not valid YAML: {exc}") from exc
            except ValidationError as exc:
                raise ConfigError(f"Invalid configuration in {candidate}: {exc}") from exc
    return DEFAULT_CONFIG.model_copy(deep=True)


def dump_default_config(target: Path) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(DEFAULT_CONFIG.model_dump(mode="json"), handle, sort_keys=False)


__all__ = [
    "AppConfig",
    "DEFAULT_CONFIG",
    "KMSConfig",
    "LayoutConfig",
    "LoggingConfig",
    "TrustConfig",
    "config_search_paths",
    "dump_default_config",
    "load_config",
]
