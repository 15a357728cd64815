import io

import pytest

from release_guardian.crypto.keys import EcKeyPair, RootPublicKey, encode_private, encode_public
from release_guardian.crypto.signer import sign_bytes, sign_stream
from release_guardian.exceptions import ChainStateError
from release_guardian.models import TrustState
from release_guardian.plugins.kms.local import SoftwareKMS
from release_guardian.services.chain import ChainVerifier, VerificationSession, verify_artifact, verify_release_key
from release_guardian.services.release_keys import generate_release_key
from release_guardian.services.root_signer import fetch_root_key, sign_with_root

from ..fakes import ROOT_KEY_ID


def test_release_key_endorsement(root_pair: EcKeyPair, release_pair: EcKeyPair) -> None:
    release_pub = encode_public(release_pair).encode("utf-8")
    sig_rk = sign_bytes(root_pair, release_pub)
    assert verify_release_key(RootPublicKey.from_key(root_pair), release_pub, sig_rk)

    other_pub = encode_public(EcKeyPair.generate()).encode("utf-8")
    assert not verify_release_key(RootPublicKey.from_key(root_pair), other_pub, sig_rk)


def test_end_to_end_chain(software_kms: SoftwareKMS) -> None:
    release_priv, release_pub = generate_release_key()
    sig_rk = sign_with_root(software_kms, None, release_pub.encode("utf-8"), key_id=ROOT_KEY_ID)
    artifact = b"hello-release"
    sig_art = sign_stream(release_priv, io.BytesIO(artifact))

    root = fetch_root_key(software_kms, None, key_id=ROOT_KEY_ID)
    assert verify_release_key(root, release_pub, sig_rk)
    assert verify_artifact(release_pub, io.BytesIO(artifact), sig_art)

    tampered = b"hello-releasE"
    assert verify_release_key(root, release_pub, sig_rk)
    assert not verify_artifact(release_pub, io.BytesIO(tampered), sig_art)


def _endorsed_release(root_pair: EcKeyPair):
    release = EcKeyPair.generate()
    release_pub = encode_public(release)
    return release, release_pub, sign_bytes(root_pair, release_pub.encode("utf-8"))


def test_session_walks_states(root_pair: EcKeyPair) -> None:
    release, release_pub, sig_rk = _endorsed_release(root_pair)
    session = VerificationSession()
    assert session.state is TrustState.START

    session.use_root(RootPublicKey.from_key(root_pair))
    assert session.state is TrustState.ROOT_KEY_OBTAINED

    assert session.verify_release_key(release_pub, sig_rk) is TrustState.RELEASE_KEY_VERIFIED

    good = sign_stream(encode_private(release), io.BytesIO(b"artifact-1"))
    assert session.verify_artifact(io.BytesIO(b"artifact-1"), good) is TrustState.TRUSTED
    assert session.verify_artifact(io.BytesIO(b"artifact-2"), good) is TrustState.UNTRUSTED
    # endorsement stays cached across artifacts
    assert session.state is TrustState.RELEASE_KEY_VERIFIED


def test_session_rejects_unendorsed_release_key(root_pair: EcKeyPair) -> None:
    _, release_pub, _ = _endorsed_release(root_pair)
    forged = sign_bytes(EcKeyPair.generate(), release_pub.encode("utf-8"))
    session = VerificationSession(RootPublicKey.from_key(root_pair))
    assert session.verify_release_key(release_pub, forged) is TrustState.UNTRUSTED
    with pytest.raises(ChainStateError):
        session.verify_artifact(io.BytesIO(b"data"), b"\x00" * 64)


def test_session_out_of_order(root_pair: EcKeyPair) -> None:
    session = VerificationSession()
    with pytest.raises(ChainStateError):
        session.verify_release_key("pub", b"sig")
    session.use_root(RootPublicKey.from_key(root_pair))
    with pytest.raises(ChainStateError):
        session.use_root(RootPublicKey.from_key(root_pair))
    with pytest.raises(ChainStateError):
        session.verify_artifact(io.BytesIO(b"data"), b"sig")


def test_verify_chain_requires_same_release_key(root_pair: EcKeyPair) -> None:
    verifier = ChainVerifier(RootPublicKey.from_key(root_pair))
    release, release_pub, sig_rk = _endorsed_release(root_pair)
    stranger = EcKeyPair.generate()

    artifact = b"archive"
    by_release = sign_stream(encode_private(release), io.BytesIO(artifact))
    by_stranger = sign_stream(encode_private(stranger), io.BytesIO(artifact))

    assert verifier.verify_chain(release_pub, sig_rk, io.BytesIO(artifact), by_release) is TrustState.TRUSTED
    assert verifier.verify_chain(release_pub, sig_rk, io.BytesIO(artifact), by_stranger) is TrustState.UNTRUSTED
    # stranger's artifact signature is fine on its own, but its key is not endorsed
    assert verifier.verify_artifact(encode_public(stranger), io.BytesIO(artifact), by_stranger)
    assert verifier.verify_chain(encode_public(stranger), sig_rk, io.BytesIO(artifact), by_stranger) is TrustState.UNTRUSTED
