"""
Tests for TokenServiceConfig.
"""

import pydantic
import pytest

from service_token.app.config import TokenServiceConfig
from service_token.app.errors import UnsupportedAlgorithmError
from service_token.app.models import Algorithm


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Run each test away from any developer .env file."""
    monkeypatch.chdir(tmp_path)


def test_defaults():
    config = TokenServiceConfig()

    assert config.algorithm is Algorithm.ES256
    assert config.ttl_seconds == 600
    assert config.audience == "https://addisland-api.aii.et/"
    assert config.private_key_locations == ["./bank-private-key.pem"]
    assert config.port == 3000


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("TOKEN_BANK_ID", "bank-42")
    monkeypatch.setenv("TOKEN_KEY_ID", "kid-7")
    monkeypatch.setenv("TOKEN_ALGORITHM", "EdDSA")
    monkeypatch.setenv("TOKEN_TTL_SECONDS", "120")
    monkeypatch.setenv("TOKEN_PRIVATE_KEY_LOCATIONS", '["/etc/bank/key.pem", "env:BANK_KEY"]')

    config = TokenServiceConfig()

    assert config.issuer == "bank:bank-42"
    assert config.key_id == "kid-7"
    assert config.algorithm is Algorithm.EDDSA
    assert config.ttl_seconds == 120
    assert config.private_key_locations == ["/etc/bank/key.pem", "env:BANK_KEY"]


def test_dotenv_file(tmp_path):
    (tmp_path / ".env").write_text("TOKEN_AUDIENCE=https://from-dotenv/\n", encoding="utf-8")

    assert TokenServiceConfig().audience == "https://from-dotenv/"


def test_unsupported_algorithm_fails_fast():
    with pytest.raises(UnsupportedAlgorithmError):
        TokenServiceConfig(algorithm="HS256")


@pytest.mark.parametrize("overrides", [
    {"ttl_seconds": 0},
    {"ttl_seconds": -1},
    {"bank_id": ""},
    {"key_id": ""},
])
def test_invalid_values(overrides):
    with pytest.raises(pydantic.ValidationError):
        TokenServiceConfig(**overrides)


def test_signing_context():
    config = TokenServiceConfig(bank_id="b1", key_id="k1", algorithm="RS256", audience="https://a/", ttl_seconds=30)

    context = config.signing_context()

    assert context.issuer == "bank:b1"
    assert context.key_id == "k1"
    assert context.algorithm is Algorithm.RS256
    assert context.audience == "https://a/"
    assert context.ttl_seconds == 30
