"""
Unit tests for password hashing and token signing.
"""
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from identity_service.core.exceptions import HashingError, TokenInvalidError, ValidationError
from identity_service.core.security import PasswordHasher, TokenClaims, TokenProfile, TokenSigner
from tests.conftest import TEST_ACCESS_SECRET, TEST_REFRESH_SECRET, FrozenClock


ACCESS = TokenProfile(name="access", secret=TEST_ACCESS_SECRET, ttl=timedelta(seconds=120))
REFRESH = TokenProfile(name="refresh", secret=TEST_REFRESH_SECRET, ttl=timedelta(days=7))


def make_claims(**overrides) -> TokenClaims:
    values = {"account_id": "acc-1", "email": "alice@example.com", "roles": ["user"]}
    values.update(overrides)
    return TokenClaims(**values)


class TestPasswordHasher:
    """Test suite for PasswordHasher."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_hash_then_verify(self, hasher):
        digest = await hasher.hash("secret123")

        assert digest != "secret123"
        assert await hasher.verify("secret123", digest) is True
        assert await hasher.verify("secret124", digest) is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_hash_is_salted(self, hasher):
        first = await hasher.hash("secret123")
        second = await hasher.hash("secret123")

        assert first != second
        assert len(first) == len(second)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unrecognised_digest_is_a_mismatch(self, hasher):
        assert await hasher.verify("secret123", "not-a-bcrypt-digest") is False
        assert await hasher.verify("secret123", None) is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_placeholder_never_matches(self, hasher):
        assert await hasher.verify_placeholder("secret123") is False
        assert await hasher.verify_placeholder("") is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_password_over_72_bytes_is_rejected(self, hasher):
        with pytest.raises(ValidationError):
            await hasher.hash("a" * 72 + "correct-suffix")
        with pytest.raises(ValidationError):
            await hasher.hash("\u00e9" * 37)

        assert await hasher.hash("\u00e9" * 36)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_shared_72_byte_prefix_does_not_verify(self, hasher):
        digest = await hasher.hash("a" * 72)

        assert await hasher.verify("a" * 72, digest) is True
        assert await hasher.verify("a" * 72 + "attacker-guess", digest) is False

    @pytest.mark.unit
    def test_configured_rounds_are_used(self):
        hasher = PasswordHasher(rounds=5, max_workers=1)
        try:
            assert hasher.hash_sync("secret123").startswith("$2b$05$")
        finally:
            hasher.shutdown()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_shut_down_pool_raises_hashing_error(self):
        hasher = PasswordHasher(rounds=4, max_workers=1)
        hasher.shutdown()

        with pytest.raises(HashingError):
            await hasher.hash("secret123")


class TestTokenSigner:
    """Test suite for TokenSigner."""

    @pytest.mark.unit
    def test_sign_then_verify_returns_claims(self, signer, clock):
        token = signer.sign(make_claims(), ACCESS)

        claims = signer.verify(token, ACCESS)

        assert claims.account_id == "acc-1"
        assert claims.email == "alice@example.com"
        assert claims.roles == ["user"]
        assert claims.subject == "acc-1"
        assert claims.expires_at == clock.now + timedelta(seconds=120)

    @pytest.mark.unit
    def test_refresh_profile_lives_seven_days(self, signer, clock):
        token = signer.sign(make_claims(), REFRESH)

        clock.advance(days=6, hours=23)
        claims = signer.verify(token, REFRESH)

        assert claims.expires_at == clock.now + timedelta(hours=1)

    @pytest.mark.unit
    def test_valid_until_expiry(self, signer, clock):
        token = signer.sign(make_claims(), ACCESS)

        clock.advance(seconds=120)
        assert signer.verify(token, ACCESS).account_id == "acc-1"

        clock.advance(seconds=1)
        with pytest.raises(TokenInvalidError):
            signer.verify(token, ACCESS)

    @pytest.mark.unit
    def test_fractional_second_clock_keeps_full_lifetime(self):
        clock = FrozenClock(datetime(2024, 1, 15, 12, 0, 0, 500000, tzinfo=timezone.utc))
        signer = TokenSigner(clock=clock)
        issued = clock.now
        token = signer.sign(make_claims(), ACCESS)

        clock.advance(seconds=120)
        claims = signer.verify(token, ACCESS)

        assert claims.expires_at >= issued + timedelta(seconds=120)

    @pytest.mark.unit
    def test_profiles_do_not_cross_verify(self, signer):
        access_token = signer.sign(make_claims(), ACCESS)
        refresh_token = signer.sign(make_claims(), REFRESH)

        with pytest.raises(TokenInvalidError):
            signer.verify(access_token, REFRESH)
        with pytest.raises(TokenInvalidError):
            signer.verify(refresh_token, ACCESS)

    @pytest.mark.unit
    def test_type_claim_is_checked(self, signer):
        impostor = TokenProfile(name="refresh", secret=TEST_ACCESS_SECRET, ttl=timedelta(days=7))
        token = signer.sign(make_claims(), impostor)

        with pytest.raises(TokenInvalidError):
            signer.verify(token, ACCESS)

    @pytest.mark.unit
    @pytest.mark.parametrize("token", ["garbage", "", "a.b.c", None])
    def test_malformed_tokens_rejected(self, signer, token):
        with pytest.raises(TokenInvalidError):
            signer.verify(token, ACCESS)

    @pytest.mark.unit
    def test_tampered_payload_rejected(self, signer):
        token = signer.sign(make_claims(), ACCESS)
        forged = jwt.encode(
            {"id": "acc-2", "email": "mallory@example.com", "roles": ["admin"], "sub": "acc-2",
             "type": "access", "exp": 4102444800},
            "some-other-secret-that-is-long-enough!!",
            algorithm="HS256",
        )
        header, _, signature = token.split(".")
        _, payload, _ = forged.split(".")

        with pytest.raises(TokenInvalidError):
            signer.verify(f"{header}.{payload}.{signature}", ACCESS)

    @pytest.mark.unit
    def test_missing_claims_rejected(self, signer):
        token = jwt.encode({"id": "acc-1", "type": "access", "exp": 4102444800}, TEST_ACCESS_SECRET, algorithm="HS256")

        with pytest.raises(TokenInvalidError):
            signer.verify(token, ACCESS)

    @pytest.mark.unit
    def test_profile_repr_hides_secret(self):
        assert TEST_ACCESS_SECRET not in repr(ACCESS)
