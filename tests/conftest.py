"""
Shared fixtures.

``helpers`` is importable from every test module because this directory is
placed on sys.path by pytest's rootdir conftest handling.
"""

import pytest

from stellar_pipelines.runtime.config import NetworkConfig
from stellar_pipelines.signers.ed25519 import Ed25519Signer

from helpers import TEST_PASSPHRASE, MockRpc, RecordingSigner, mk_address


@pytest.fixture
def passphrase():
    return TEST_PASSPHRASE


@pytest.fixture
def network_config():
    return NetworkConfig(network_passphrase=TEST_PASSPHRASE, rpc_url="https://rpc.example.org")


@pytest.fixture
def source_address():
    return mk_address(1)


@pytest.fixture
def source_signer(source_address):
    return RecordingSigner(source_address)


@pytest.fixture
def rpc():
    return MockRpc()


@pytest.fixture
def ed25519_signer():
    """Real signer over a fixed seed, its address derived from the seed; disposed after the test."""
    signer = Ed25519Signer(bytes(range(32)))
    yield signer
    signer.dispose()
