"""
Session-wide key fixtures.

Key generation (RSA in particular) is slow, so each family is generated once
per test session and written to per-test files where needed.
"""

import pytest

from shared.test_helpers import FixedClock, KeyPairFactory, get_test_settings
from service_token.app.config import TokenServiceConfig


@pytest.fixture(scope="session")
def ec_key():
    return KeyPairFactory.ec_p256()


@pytest.fixture(scope="session")
def rsa_key():
    return KeyPairFactory.rsa()


@pytest.fixture(scope="session")
def ed25519_key():
    return KeyPairFactory.ed25519()


@pytest.fixture(scope="session")
def keys_by_algorithm(ec_key, rsa_key, ed25519_key):
    return {"ES256": ec_key, "RS256": rsa_key, "EdDSA": ed25519_key}


@pytest.fixture
def clock():
    """Clock pinned to the issuance time used in the documented scenario."""
    return FixedClock(1763672624)


@pytest.fixture
def make_config(tmp_path):
    """Build a TokenServiceConfig whose key file holds ``pem``."""
    def _make(pem: str, **overrides) -> TokenServiceConfig:
        key_path = tmp_path / "bank-private-key.pem"
        key_path.write_text(pem, encoding="utf-8")
        settings = get_test_settings(private_key_locations=[str(key_path)])
        settings.update(overrides)
        return TokenServiceConfig(**settings)

    return _make
