"""KMS backend that shells out to external commands.

This is the seam for a real custodial KMS: the private root key stays behind
whatever CLI or daemon the commands wrap (a cloud key vault CLI, an HSM
tool, ...). The Python process only ever sees public coordinates and
signatures.

Command contracts:

describe: ``<describe_cmd> <key_id>``
  stdout: a JWK JSON object (``kty``, ``crv``, ``x``, ``y`` base64url,
  optional ``kid``), either bare or nested under a ``"key"`` member.

sign: ``<sign_cmd> <key_id> <scheme>``
  stdin: base64(digest)
  stdout: base64(signature) (standard or url-safe alphabet), the raw
  ``r || s`` form.

Any non-zero exit, timeout or unparsable output raises
:class:`KMSCommandError`.
"""
from __future__ import annotations

import base64
import binascii
import json
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

import structlog

from ...exceptions import KMSCommandError, KMSError
from ...models import KeyDescription
from .base import EnvironmentCredential

logger = structlog.get_logger(__name__)


def _b64decode_any(value: str) -> bytes:
    text = value.strip()
    padded = text + "=" * (-len(text) % 4)
    try:
        if "-" in text or "_" in text:
            return base64.urlsafe_b64decode(padded.encode("ascii"))
        return base64.b64decode(padded.encode("ascii"), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise KMSCommandError(f"Value is not valid base64: {exc}") from exc


def _credential_env(credential: Any) -> Dict[str, str]:
    if credential is None:
        return {}
    if isinstance(credential, EnvironmentCredential):
        return dict(credential.values)
    if isinstance(credential, Mapping):
        return {str(k): str(v) for k, v in credential.items()}
    raise KMSError(f"Command KMS cannot use a credential of type {type(credential).__name__}")


@dataclass
class CommandKMS:
    describe_cmd: str
    sign_cmd: str
    timeout_seconds: float = 30.0

    def _run(self, argv: List[str], *, credential: Any, stdin: Optional[bytes] = None) -> str:
        env = os.environ.copy()
        env.update(_credential_env(credential))
        try:
            proc = subprocess.run(
                argv,
                input=stdin,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=float(self.timeout_seconds),
                env=env,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise KMSCommandError(f"{argv[0]} timed out after {self.timeout_seconds}s") from exc
        except OSError as exc:
            raise KMSCommandError(f"{argv[0]} failed to execute: {exc}") from exc

        if proc.returncode != 0:
            err = (proc.stderr or b"").decode("utf-8", errors="replace").strip()
            raise KMSCommandError(f"{argv[0]} returned code {proc.returncode}: {err}")
        return (proc.stdout or b"").decode("utf-8", errors="replace").strip()

    def get_key_description(self, credential: Any, key_id: str) -> KeyDescription:
        if not self.describe_cmd.strip():
            raise KMSError("Command KMS requires describe_cmd")
        argv = [*shlex.split(self.describe_cmd), key_id]
        logger.info("kms.command.describe", key_id=key_id, command=argv[0])
        out = self._run(argv, credential=credential)
        try:
            payload = json.loads(out)
        except json.JSONDecodeError as exc:
            raise KMSCommandError("Describe command did not print JSON") from exc
        if isinstance(payload, dict) and isinstance(payload.get("key"), dict):
            payload = payload["key"]
        if not isinstance(payload, dict):
            raise KMSCommandError("Describe command output is not a JWK object")

        x = payload.get("x")
        y = payload.get("y")
        return KeyDescription(
            key_id=str(payload.get("kid") or key_id),
            curve=str(payload.get("crv") or ""),
            x=_b64decode_any(x) if x else None,
            y=_b64decode_any(y) if y else None,
            key_type=str(payload.get("kty") or "EC"),
        )

    def sign(self, credential: Any, key_id: str, digest: bytes, scheme: str) -> bytes:
        if not self.sign_cmd.strip():
            raise KMSError("Command KMS requires sign_cmd")
        argv = [*shlex.split(self.sign_cmd), key_id, scheme]
        logger.info("kms.command.sign", key_id=key_id, scheme=scheme, command=argv[0])
        stdin = (base64.b64encode(bytes(digest)).decode("ascii") + "\n").encode("utf-8")
        out = self._run(argv, credential=credential, stdin=stdin)
        if not out:
            raise KMSCommandError("Sign command printed no signature")
        return _b64decode_any(out)


__all__ = ["CommandKMS"]
