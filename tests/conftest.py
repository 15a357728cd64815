from __future__ import annotations

import pytest

from release_guardian.crypto.keys import EcKeyPair
from release_guardian.models import Curve
from release_guardian.plugins.kms.local import SoftwareKMS

from .fakes import ROOT_KEY_ID


@pytest.fixture()
def root_pair() -> EcKeyPair:
    return EcKeyPair.generate(Curve.P256)


@pytest.fixture()
def software_kms(root_pair: EcKeyPair) -> SoftwareKMS:
    return SoftwareKMS({ROOT_KEY_ID: root_pair})


@pytest.fixture()
def release_pair() -> EcKeyPair:
    return EcKeyPair.generate(Curve.P256)
