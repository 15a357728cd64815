"""Narrow capability interface for the custodial KMS holding the root key.

Only two operations are needed: describe a key (curve and public
coordinates) and sign a precomputed digest. Credentials are opaque to the
core and handed through to the backend untouched.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Protocol, runtime_checkable

from ...models import KeyDescription


@runtime_checkable
class KMSClient(Protocol):
    """Protocol implemented by KMS backends."""

    def get_key_description(self, credential: Any, key_id: str) -> KeyDescription: ...

    def sign(self, credential: Any, key_id: str, digest: bytes, scheme: str) -> bytes: ...


@dataclass(frozen=True)
class EnvironmentCredential:
    """Credential captured from environment variables (tokens, tenant ids, ...)"""

    values: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_environ(cls, names: Iterable[str]) -> "EnvironmentCredential":
        return cls({name: os.environ[name] for name in names if os.environ.get(name)})

    def __repr__(self) -> str:
        # never print secret values
        return f"EnvironmentCredential(names={sorted(self.values)})"


__all__ = ["EnvironmentCredential", "KMSClient"]
