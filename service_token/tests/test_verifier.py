"""
Tests for token verification.
"""

import json

import pytest

from service_token.app.keys.normalizer import normalize_pem
from service_token.app.models import FailureKind, SigningContext
from service_token.app.signing.encoding import b64url_decode, b64url_encode, compact_json
from service_token.app.signing.signer import TokenSigner
from service_token.app.validation.verifier import TokenVerifier, read_unverified_header
from shared.test_helpers import KeyPairFactory

BANK_ID = "db01bea4-d823-4643-ae9d-e3a5b9ad85e4"
ISSUER = f"bank:{BANK_ID}"
AUDIENCE = "https://example/"
IAT = 1763672624
EXP = 1763673224


def _context(algorithm="ES256"):
    return SigningContext(
        issuer_id=BANK_ID,
        audience=AUDIENCE,
        key_id="cbe-1762998726956-hu7b87",
        algorithm=algorithm,
        ttl_seconds=600,
    )


def _forge(header, payload, signature=b"sig"):
    """Assemble a token from arbitrary parts without signing."""
    return ".".join([
        b64url_encode(compact_json(header)),
        b64url_encode(compact_json(payload)),
        b64url_encode(signature),
    ])


@pytest.fixture
def verifier():
    return TokenVerifier()


@pytest.fixture
def signed(keys_by_algorithm):
    """Token and public key for each algorithm."""
    signer = TokenSigner()

    def _signed(algorithm="ES256"):
        key_fixture = keys_by_algorithm[algorithm]
        key = normalize_pem(key_fixture.traditional_pem or key_fixture.pkcs8_pem)
        return signer.sign(key, _context(algorithm), IAT), key.public_key()

    return _signed


ALGORITHMS = ["ES256", "RS256", "EdDSA"]


class TestRoundTrip:
    """Tokens verify with the public key derived from the signing key."""

    @pytest.mark.parametrize("algorithm", ALGORITHMS)
    @pytest.mark.parametrize("now", [IAT, IAT + 1, 1763673000, EXP - 1])
    def test_valid_before_expiry(self, verifier, signed, algorithm, now):
        token, public_key = signed(algorithm)

        result = verifier.verify(token, public_key, ISSUER, AUDIENCE, now)

        assert result.valid is True
        assert result.failure_kind is None
        assert result.claims["exp"] == result.claims["iat"] + 600
        assert result.header["alg"] == algorithm

    def test_scenario(self, verifier, signed):
        token, public_key = signed("ES256")

        assert verifier.verify(token, public_key, ISSUER, AUDIENCE, 1763673000).valid is True

        expired = verifier.verify(token, public_key, ISSUER, AUDIENCE, 1763673300)
        assert expired.valid is False
        assert expired.failure_kind is FailureKind.EXPIRED


class TestSignatureTampering:
    """Any change to the signature bytes is detected."""

    @pytest.mark.parametrize("algorithm", ALGORITHMS)
    def test_every_single_bit_flip_is_bad_signature(self, verifier, signed, algorithm):
        token, public_key = signed(algorithm)
        signing_input, signature_segment = token.rsplit(".", 1)
        signature = b64url_decode(signature_segment)

        for index in range(len(signature)):
            for bit in range(8):
                tampered = bytearray(signature)
                tampered[index] ^= 1 << bit
                forged = f"{signing_input}.{b64url_encode(bytes(tampered))}"

                result = verifier.verify(forged, public_key, ISSUER, AUDIENCE, IAT)

                assert result.failure_kind is FailureKind.BAD_SIGNATURE, (index, bit)

    def test_modified_payload_is_bad_signature(self, verifier, signed):
        token, public_key = signed("ES256")
        header, _, signature = token.split(".")
        payload = {"iss": ISSUER, "sub": ISSUER, "aud": AUDIENCE, "iat": IAT, "exp": EXP + 3600}
        forged = f"{header}.{b64url_encode(compact_json(payload))}.{signature}"

        result = verifier.verify(forged, public_key, ISSUER, AUDIENCE, IAT)

        assert result.failure_kind is FailureKind.BAD_SIGNATURE

    def test_signing_input_is_not_reserialized(self, verifier, signed):
        token, public_key = signed("ES256")
        header_segment, payload_segment, signature = token.split(".")
        # Same JSON, different bytes
        spaced = json.dumps(json.loads(b64url_decode(payload_segment)), indent=1).encode()
        forged = f"{header_segment}.{b64url_encode(spaced)}.{signature}"

        result = verifier.verify(forged, public_key, ISSUER, AUDIENCE, IAT)

        assert result.failure_kind is FailureKind.BAD_SIGNATURE

    def test_other_key_is_bad_signature(self, verifier, signed):
        token, _ = signed("ES256")
        stranger = KeyPairFactory.ec_p256().public_key

        result = verifier.verify(token, stranger, ISSUER, AUDIENCE, IAT)

        assert result.failure_kind is FailureKind.BAD_SIGNATURE

    def test_key_type_not_matching_header_alg(self, verifier, signed, rsa_key):
        token, _ = signed("ES256")

        result = verifier.verify(token, rsa_key.public_key, ISSUER, AUDIENCE, IAT)

        assert result.failure_kind is FailureKind.BAD_SIGNATURE

    def test_truncated_es256_signature(self, verifier, signed):
        token, public_key = signed("ES256")
        signing_input, signature_segment = token.rsplit(".", 1)
        short = b64url_encode(b64url_decode(signature_segment)[:63])

        result = verifier.verify(f"{signing_input}.{short}", public_key, ISSUER, AUDIENCE, IAT)

        assert result.failure_kind is FailureKind.BAD_SIGNATURE

    def test_missing_public_key(self, verifier, signed):
        token, _ = signed("ES256")

        result = verifier.verify(token, None, ISSUER, AUDIENCE, IAT)

        assert result.failure_kind is FailureKind.BAD_SIGNATURE
        assert "kid" in result.message


class TestClaimChecks:
    """Expiry, issuer and audience checks."""

    @pytest.mark.parametrize("now", [EXP, EXP + 1, EXP + 86400])
    def test_expired_at_or_after_exp(self, verifier, signed, now):
        token, public_key = signed("RS256")

        result = verifier.verify(token, public_key, ISSUER, AUDIENCE, now)

        assert result.valid is False
        assert result.failure_kind is FailureKind.EXPIRED
        assert result.claims is None

    def test_issuer_mismatch(self, verifier, signed):
        token, public_key = signed("EdDSA")

        result = verifier.verify(token, public_key, "bank:someone-else", AUDIENCE, IAT)

        assert result.failure_kind is FailureKind.CLAIM_MISMATCH

    def test_audience_mismatch(self, verifier, signed):
        token, public_key = signed("ES256")

        result = verifier.verify(token, public_key, ISSUER, "https://other.example/", IAT)

        assert result.failure_kind is FailureKind.CLAIM_MISMATCH

    def test_expiry_checked_before_claims(self, verifier, signed):
        token, public_key = signed("ES256")

        result = verifier.verify(token, public_key, "bank:someone-else", "https://other/", EXP)

        assert result.failure_kind is FailureKind.EXPIRED

    def test_audience_list_containing_expected(self, verifier, ed25519_key):
        private_key = ed25519_key.private_key
        header = {"alg": "EdDSA", "kid": "k1", "typ": "JWT"}
        payload = {"iss": ISSUER, "sub": ISSUER, "aud": ["https://a/", AUDIENCE], "iat": IAT, "exp": EXP}
        signing_input = f"{b64url_encode(compact_json(header))}.{b64url_encode(compact_json(payload))}"
        token = f"{signing_input}.{b64url_encode(private_key.sign(signing_input.encode()))}"

        result = verifier.verify(token, private_key.public_key(), ISSUER, AUDIENCE, IAT)
        assert result.valid is True

        result = verifier.verify(token, private_key.public_key(), ISSUER, "https://b/", IAT)
        assert result.failure_kind is FailureKind.CLAIM_MISMATCH


GOOD_HEADER = {"alg": "ES256", "kid": "k1", "typ": "JWT"}
GOOD_PAYLOAD = {"iss": ISSUER, "sub": ISSUER, "aud": AUDIENCE, "iat": IAT, "exp": EXP}


class TestMalformed:
    """Structural problems are reported as MALFORMED, never raised."""

    @pytest.mark.parametrize("token", [
        "",
        "abc",
        "abc.def",
        "a.b.c.d",
        "..",
        "eyJhbGciOiJFUzI1NiJ9..c2ln",
        ".eyJleHAiOjF9.c2ln",
    ])
    def test_wrong_segment_structure(self, verifier, ec_key, token):
        result = verifier.verify(token, ec_key.public_key, ISSUER, AUDIENCE, IAT)

        assert result.valid is False
        assert result.failure_kind is FailureKind.MALFORMED

    def test_token_with_one_segment_removed(self, verifier, signed):
        token, public_key = signed("ES256")
        header, payload, _ = token.split(".")

        result = verifier.verify(f"{header}.{payload}", public_key, ISSUER, AUDIENCE, IAT)

        assert result.failure_kind is FailureKind.MALFORMED

    @pytest.mark.parametrize("token", [None, 42, b"a.b.c"])
    def test_non_string_token(self, verifier, ec_key, token):
        result = verifier.verify(token, ec_key.public_key, ISSUER, AUDIENCE, IAT)

        assert result.failure_kind is FailureKind.MALFORMED

    def test_non_json_header(self, verifier, ec_key):
        token = f"{b64url_encode(b'not json')}.{b64url_encode(compact_json(GOOD_PAYLOAD))}.c2ln"

        result = verifier.verify(token, ec_key.public_key, ISSUER, AUDIENCE, IAT)

        assert result.failure_kind is FailureKind.MALFORMED

    def test_header_not_an_object(self, verifier, ec_key):
        token = _forge(["ES256"], GOOD_PAYLOAD)

        assert verifier.verify(token, ec_key.public_key, ISSUER, AUDIENCE, IAT).failure_kind is FailureKind.MALFORMED

    @pytest.mark.parametrize("alg", [None, "none", "HS256", "es256", ["ES256"]])
    def test_unsupported_header_alg(self, verifier, ec_key, alg):
        header = dict(GOOD_HEADER, alg=alg)

        result = verifier.verify(_forge(header, GOOD_PAYLOAD), ec_key.public_key, ISSUER, AUDIENCE, IAT)

        assert result.failure_kind is FailureKind.MALFORMED

    @pytest.mark.parametrize("payload", [
        {k: v for k, v in GOOD_PAYLOAD.items() if k != "exp"},
        {k: v for k, v in GOOD_PAYLOAD.items() if k != "iss"},
        {k: v for k, v in GOOD_PAYLOAD.items() if k != "aud"},
        dict(GOOD_PAYLOAD, exp="1763673224"),
        dict(GOOD_PAYLOAD, exp=True),
        dict(GOOD_PAYLOAD, exp=1763673224.5),
        dict(GOOD_PAYLOAD, aud=7),
        dict(GOOD_PAYLOAD, aud=["ok", 7]),
        [GOOD_PAYLOAD],
    ])
    def test_invalid_payload_fields(self, verifier, ec_key, payload):
        result = verifier.verify(_forge(GOOD_HEADER, payload), ec_key.public_key, ISSUER, AUDIENCE, IAT)

        assert result.failure_kind is FailureKind.MALFORMED

    def test_padded_segment(self, verifier, signed):
        token, public_key = signed("ES256")
        header, payload, signature = token.split(".")

        result = verifier.verify(f"{header}.{payload}.{signature}==", public_key, ISSUER, AUDIENCE, IAT)

        assert result.failure_kind is FailureKind.MALFORMED

    def test_standard_base64_alphabet_rejected(self, verifier, signed):
        token, public_key = signed("ES256")
        header, payload, _ = token.split(".")

        result = verifier.verify(f"{header}.{payload}.ab+/", public_key, ISSUER, AUDIENCE, IAT)

        assert result.failure_kind is FailureKind.MALFORMED


class TestReadUnverifiedHeader:
    """Test cases for read_unverified_header."""

    def test_returns_header(self, signed):
        token, _ = signed("RS256")

        assert read_unverified_header(token) == {
            "alg": "RS256",
            "kid": "cbe-1762998726956-hu7b87",
            "typ": "JWT",
        }

    @pytest.mark.parametrize("token", ["", "a.b", "!!!.b.c", None])
    def test_returns_none_for_garbage(self, token):
        assert read_unverified_header(token) is None
