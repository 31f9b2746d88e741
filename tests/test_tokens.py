"""Unit tests for auth/tokens.py -- password hashing and JWT handling.

Covers:
- bcrypt hashes are salted per call and verify correctly
- a corrupt stored hash raises CredentialError instead of returning False
- token round trip yields the embedded Identity
- expired, tampered, malformed, and claim-less tokens all raise InvalidTokenError
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from auth.models import Identity
from auth.tokens import create_access_token, decode_access_token, hash_password, verify_password
from core.config import get_settings
from core.errors import CredentialError, InvalidTokenError, UnauthenticatedError


class TestPasswordHashing:
    def test_hash_is_not_plaintext_and_verifies(self):
        hashed = hash_password("secret1")
        assert hashed != "secret1"
        assert verify_password("secret1", hashed) is True

    def test_wrong_password_is_false(self):
        assert verify_password("wrong", hash_password("secret1")) is False

    def test_same_password_gets_different_salts(self):
        assert hash_password("secret1") != hash_password("secret1")

    def test_cost_factor_is_at_least_ten(self):
        # bcrypt encodes the cost as $2b$<rounds>$...
        rounds = int(hash_password("secret1").split("$")[2])
        assert rounds >= 10

    def test_corrupt_hash_raises_instead_of_false(self):
        with pytest.raises(CredentialError):
            verify_password("secret1", "not-a-bcrypt-hash")

    def test_password_over_72_bytes_does_not_match(self):
        # 30 CJK characters are 90 bytes in UTF-8.
        assert verify_password("密" * 30, hash_password("secret1")) is False


class TestAccessTokens:
    def test_round_trip_returns_identity(self):
        token = create_access_token(user_id=5, email="a@x.com", role="user")
        assert decode_access_token(token) == Identity(user_id=5, email="a@x.com", role="user")

    def test_admin_role_survives(self):
        identity = decode_access_token(create_access_token(1, "root@x.com", "admin"))
        assert identity.is_admin

    def test_expiry_uses_requested_lifetime(self):
        token = create_access_token(5, "a@x.com", "user", expire_seconds=60)
        claims = jwt.get_unverified_claims(token)
        assert claims["exp"] - claims["iat"] == 60

    def test_expired_token_rejected(self):
        past = datetime.now(timezone.utc) - timedelta(minutes=5)
        token = jwt.encode(
            {"sub": "5", "userId": 5, "email": "a@x.com", "role": "user", "exp": past},
            get_settings().secret_key,
            algorithm="HS256",
        )
        with pytest.raises(InvalidTokenError):
            decode_access_token(token)

    def test_wrong_signature_rejected(self):
        token = jwt.encode(
            {"sub": "5", "userId": 5, "email": "a@x.com", "role": "admin"},
            "x" * 40,
            algorithm="HS256",
        )
        with pytest.raises(InvalidTokenError):
            decode_access_token(token)

    def test_tampered_payload_rejected(self):
        header, _payload, signature = create_access_token(5, "a@x.com", "user").split(".")
        forged_payload = jwt.encode({"userId": 5, "role": "admin"}, "k" * 40).split(".")[1]
        with pytest.raises(InvalidTokenError):
            decode_access_token(f"{header}.{forged_payload}.{signature}")

    @pytest.mark.parametrize("garbage", ["", "abc", "a.b.c", "Bearer xyz"])
    def test_malformed_token_rejected(self, garbage):
        with pytest.raises(InvalidTokenError):
            decode_access_token(garbage)

    def test_missing_identity_claims_rejected(self):
        token = jwt.encode({"sub": "5"}, get_settings().secret_key, algorithm="HS256")
        with pytest.raises(InvalidTokenError):
            decode_access_token(token)

    def test_unknown_role_rejected(self):
        token = jwt.encode(
            {"userId": 5, "email": "a@x.com", "role": "superuser"},
            get_settings().secret_key,
            algorithm="HS256",
        )
        with pytest.raises(InvalidTokenError):
            decode_access_token(token)

    def test_invalid_token_is_an_unauthenticated_error(self):
        assert issubclass(InvalidTokenError, UnauthenticatedError)
        assert InvalidTokenError().status_code == 401
