"""Unit tests for verification tokens and one-time codes."""

import hashlib
import re
from datetime import timedelta

import pytest

from chatapp.kernel.identity import ephemeral
from chatapp.kernel.identity.ephemeral import EphemeralSecretGenerator, hash_secret


@pytest.fixture
def generator(identity_config, clock) -> EphemeralSecretGenerator:
    return EphemeralSecretGenerator(identity_config, clock=clock)


class TestGeneration:

    def test_token_is_40_hex_chars(self, generator):
        secret = generator.generate_token()
        assert re.fullmatch(r"[0-9a-f]{40}", secret.plaintext)

    def test_token_expiry(self, generator, clock):
        assert generator.generate_token().expires_at == clock() + timedelta(minutes=20)

    def test_otp_expiry(self, generator, clock):
        assert generator.generate_otp().expires_at == clock() + timedelta(minutes=10)

    def test_otp_is_always_six_digits(self, generator):
        for _ in range(2000):
            assert re.fullmatch(r"\d{6}", generator.generate_otp().plaintext)

    @pytest.mark.parametrize("drawn,expected", [(0, "000000"), (42, "000042"), (999999, "999999")])
    def test_otp_is_zero_padded(self, generator, monkeypatch, drawn, expected):
        monkeypatch.setattr(ephemeral.secrets, "randbelow", lambda n: drawn)
        assert generator.generate_otp().plaintext == expected

    def test_hash_is_sha256_of_plaintext(self, generator):
        secret = generator.generate_token()
        assert secret.hash == hashlib.sha256(secret.plaintext.encode()).hexdigest()
        assert secret.hash != secret.plaintext

    def test_tokens_are_unique(self, generator):
        assert len({generator.generate_token().plaintext for _ in range(100)}) == 100

    def test_repr_hides_plaintext(self, generator):
        secret = generator.generate_token()
        assert secret.plaintext not in repr(secret)


class TestMatches:

    def test_match_before_expiry(self, generator, clock):
        secret = generator.generate_otp()
        clock.advance(minutes=9)
        assert generator.matches(secret.plaintext, secret.hash, secret.expires_at) is True

    def test_match_at_exact_expiry(self, generator, clock):
        secret = generator.generate_otp()
        clock.now = secret.expires_at
        assert generator.matches(secret.plaintext, secret.hash, secret.expires_at) is True

    def test_expired(self, generator, clock):
        secret = generator.generate_otp()
        clock.advance(minutes=10, seconds=1)
        assert generator.matches(secret.plaintext, secret.hash, secret.expires_at) is False

    def test_wrong_plaintext(self, generator):
        secret = generator.generate_token()
        assert generator.matches("0" * 40, secret.hash, secret.expires_at) is False

    @pytest.mark.parametrize("field", ["plaintext", "hash", "expires_at"])
    def test_missing_parts_never_match(self, generator, field):
        secret = generator.generate_token()
        parts = {"plaintext": secret.plaintext, "hash": secret.hash, "expires_at": secret.expires_at}
        parts[field] = None
        assert generator.matches(parts["plaintext"], parts["hash"], parts["expires_at"]) is False

    def test_naive_expiry_is_read_as_utc(self, generator, clock):
        plaintext = "123456"
        naive_expiry = (clock() + timedelta(minutes=1)).replace(tzinfo=None)
        assert generator.matches(plaintext, hash_secret(plaintext), naive_expiry) is True

        clock.advance(minutes=2)
        assert generator.matches(plaintext, hash_secret(plaintext), naive_expiry) is False
