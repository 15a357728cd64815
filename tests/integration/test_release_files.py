import os
import shutil
import stat
import sys
from pathlib import Path

import pytest

from release_guardian.crypto.keys import EcKeyPair, RootPublicKey
from release_guardian.exceptions import MalformedKey, RootKeyMismatch
from release_guardian.models import TrustState
from release_guardian.plugins.kms.local import SoftwareKMS
from release_guardian.services import release_files
from release_guardian.services.chain import verify_release_key

from ..fakes import ROOT_KEY_ID, RecordingKMS


@pytest.fixture()
def pinned_root(tmp_path: Path, root_pair: EcKeyPair) -> Path:
    path = tmp_path / "root.pub"
    path.write_text(RootPublicKey.from_key(root_pair).to_pem(), encoding="utf-8")
    return path


@pytest.fixture()
def release_dir(tmp_path: Path, software_kms: SoftwareKMS, pinned_root: Path) -> Path:
    """A complete downloaded release: relkeys.pub(.sig) and app.tar.gz(.sig)."""
    keys = tmp_path / "keys"
    private_path, public_path = release_files.write_release_key_pair(keys / "relkeys")

    published = tmp_path / "published"
    published.mkdir()
    shutil.copy(public_path, published / "relkeys.pub")
    release_files.sign_release_key_file(
        software_kms, None, published / "relkeys.pub", pinned_root, key_id=ROOT_KEY_ID
    )
    artifact = published / "app.tar.gz"
    artifact.write_bytes(os.urandom(3 * 1024 * 1024 + 17))
    release_files.sign_release_file(private_path, artifact)
    return published


def test_write_release_key_pair(tmp_path: Path) -> None:
    private_path, public_path = release_files.write_release_key_pair(tmp_path / "out" / "release")
    assert public_path == tmp_path / "out" / "release.pub"
    assert "EC PRIVATE KEY" in private_path.read_text(encoding="utf-8")
    assert "BEGIN PUBLIC KEY" in public_path.read_text(encoding="utf-8")
    if sys.platform != "win32":
        assert stat.S_IMODE(private_path.stat().st_mode) == 0o600


def test_sign_and_verify_release_key_file(tmp_path: Path, software_kms: SoftwareKMS, pinned_root: Path) -> None:
    _, public_path = release_files.write_release_key_pair(tmp_path / "release")
    sig_path = release_files.sign_release_key_file(software_kms, None, public_path, pinned_root, key_id=ROOT_KEY_ID)
    assert sig_path.name == "release.pub.sig"
    assert len(sig_path.read_bytes()) == 64
    assert release_files.verify_release_key_file(pinned_root, public_path)

    public_path.write_text(public_path.read_text(encoding="utf-8") + "\n", encoding="utf-8")
    assert not release_files.verify_release_key_file(pinned_root, public_path)


def test_sign_release_key_refuses_wrong_root(tmp_path: Path, software_kms: SoftwareKMS) -> None:
    other_root = tmp_path / "other.pub"
    other_root.write_text(EcKeyPair.generate().public_pem(), encoding="utf-8")
    _, public_path = release_files.write_release_key_pair(tmp_path / "release")
    kms = RecordingKMS(software_kms)
    with pytest.raises(RootKeyMismatch):
        release_files.sign_release_key_file(kms, None, public_path, other_root, key_id=ROOT_KEY_ID)
    assert kms.count("sign") == 0
    assert not (tmp_path / "release.pub.sig").exists()


def test_sign_and_verify_release_file(tmp_path: Path) -> None:
    private_path, public_path = release_files.write_release_key_pair(tmp_path / "release")
    artifact = tmp_path / "notes.txt"
    artifact.write_bytes(b"release notes\n")
    sig_path = release_files.sign_release_file(private_path, artifact, signature_suffix=".asc")
    assert sig_path.name == "notes.txt.asc"
    assert release_files.verify_release_file(public_path, artifact, signature_suffix=".asc")

    artifact.write_bytes(b"release notes!\n")
    assert not release_files.verify_release_file(public_path, artifact, signature_suffix=".asc")


def test_verify_release_directory_trusted(release_dir: Path, root_pair: EcKeyPair) -> None:
    root = RootPublicKey.from_key(root_pair)
    assert release_files.verify_release_directory(root, release_dir, "app.tar.gz") is TrustState.TRUSTED


def test_verify_release_directory_tampered_artifact(release_dir: Path, root_pair: EcKeyPair) -> None:
    artifact = release_dir / "app.tar.gz"
    data = bytearray(artifact.read_bytes())
    data[len(data) // 2] ^= 0x01
    artifact.write_bytes(bytes(data))
    root = RootPublicKey.from_key(root_pair)
    assert release_files.verify_release_directory(root, release_dir, "app.tar.gz") is TrustState.UNTRUSTED
    key_path = release_dir / "relkeys.pub"
    assert verify_release_key(root, key_path.read_bytes(), (release_dir / "relkeys.pub.sig").read_bytes())


def test_verify_release_directory_wrong_root(release_dir: Path) -> None:
    stranger = RootPublicKey.from_key(EcKeyPair.generate())
    assert release_files.verify_release_directory(stranger, release_dir, "app.tar.gz") is TrustState.UNTRUSTED


@pytest.mark.parametrize("missing", ["relkeys.pub", "relkeys.pub.sig", "app.tar.gz", "app.tar.gz.sig"])
def test_verify_release_directory_missing_file(release_dir: Path, root_pair: EcKeyPair, missing: str) -> None:
    (release_dir / missing).unlink()
    root = RootPublicKey.from_key(root_pair)
    assert release_files.verify_release_directory(root, release_dir, "app.tar.gz") is TrustState.UNTRUSTED


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
def test_write_release_key_pair_tightens_existing_file(tmp_path: Path) -> None:
    output = tmp_path / "relkeys"
    output.write_text("stale key\n", encoding="utf-8")
    output.chmod(0o644)
    release_files.write_release_key_pair(output)
    assert stat.S_IMODE(output.stat().st_mode) == 0o600
    assert "EC PRIVATE KEY" in output.read_text(encoding="utf-8")


def test_non_utf8_key_files_are_malformed(tmp_path: Path) -> None:
    garbage = tmp_path / "binary.pub"
    garbage.write_bytes(b"\xff\xfe\x00\x80 not a key")
    artifact = tmp_path / "app.zip"
    artifact.write_bytes(b"payload")
    (tmp_path / "app.zip.sig").write_bytes(b"\x00" * 64)

    with pytest.raises(MalformedKey):
        release_files.load_root_key(garbage)
    with pytest.raises(MalformedKey):
        release_files.verify_release_file(garbage, artifact)
    with pytest.raises(MalformedKey):
        release_files.sign_release_file(garbage, artifact)
