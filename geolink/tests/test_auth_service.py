# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the auth service and the identity store.
"""

import time
import jwt
import pytest

from geolink.models.entities import Account
from geolink.middleware.error_handler import ConflictException, AuthenticationException
from geolink.services.auth import AuthService, TokenValidationError, generate_rsa_key_pair
from geolink.services.identity import IdentityStore


class TestAuthService:
    """Test password hashing and JWT handling."""

    def test_hash_and_verify_password(self, auth_service):
        hashed = auth_service.hash_password("secret")

        assert hashed != "secret"
        assert auth_service.verify_password("secret", hashed)
        assert not auth_service.verify_password("wrong", hashed)

    def test_verify_against_malformed_hash(self, auth_service):
        assert auth_service.verify_password("secret", "not-a-bcrypt-hash") is False

    def test_generate_and_validate_token(self, auth_service):
        account = Account(email="alice@example.com", password_hash="x")

        token_data = auth_service.generate_token(account)
        payload = auth_service.validate_token(token_data["token"])

        assert token_data["token_type"] == "Bearer"
        assert token_data["expires_in"] == 3600
        assert payload["sub"] == "alice@example.com"
        assert payload["type"] == "access"

    def test_expired_token(self, jwt_key_pair):
        private_key, public_key = jwt_key_pair
        service = AuthService(private_key=private_key, public_key=public_key, access_token_expires=-10)
        token = service.generate_token(Account(email="alice@example.com", password_hash="x"))["token"]

        with pytest.raises(TokenValidationError, match="expired"):
            service.validate_token(token)

    def test_token_signed_with_other_key(self, auth_service):
        other_private, other_public = generate_rsa_key_pair()
        other = AuthService(private_key=other_private, public_key=other_public)
        token = other.generate_token(Account(email="alice@example.com", password_hash="x"))["token"]

        with pytest.raises(TokenValidationError):
            auth_service.validate_token(token)

    def test_wrong_token_type(self, auth_service, jwt_key_pair):
        private_key, _ = jwt_key_pair
        token = jwt.encode(
            {"sub": "alice@example.com", "exp": int(time.time()) + 60, "type": "refresh"},
            private_key,
            algorithm="RS256"
        )

        with pytest.raises(TokenValidationError, match="token type"):
            auth_service.validate_token(token)

    def test_extract_token_id(self, auth_service):
        token = auth_service.generate_token(Account(email="alice@example.com", password_hash="x"))["token"]
        payload = auth_service.validate_token(token)

        assert auth_service.extract_token_id(token) == f"alice@example.com:{payload['iat']}:access"

    def test_extract_token_id_from_garbage(self, auth_service):
        with pytest.raises(TokenValidationError):
            auth_service.extract_token_id("not.a.jwt")

    def test_escaped_newlines_in_keys(self, jwt_key_pair):
        private_key, public_key = jwt_key_pair
        service = AuthService(
            private_key=private_key.replace("\n", "\\n"),
            public_key=public_key.replace("\n", "\\n")
        )
        token = service.generate_token(Account(email="alice@example.com", password_hash="x"))["token"]

        assert service.validate_token(token)["sub"] == "alice@example.com"

    def test_generated_development_keys_match(self, monkeypatch):
        monkeypatch.delenv("JWT_PRIVATE_KEY", raising=False)
        monkeypatch.delenv("JWT_PUBLIC_KEY", raising=False)
        service = AuthService()
        token = service.generate_token(Account(email="alice@example.com", password_hash="x"))["token"]

        assert service.validate_token(token)["sub"] == "alice@example.com"


class TestIdentityStore:

    def test_register_and_authenticate(self, auth_service):
        store = IdentityStore(auth_service)
        store.register("alice@example.com", "secret")

        account = store.authenticate("alice@example.com", "secret")

        assert account.email == "alice@example.com"
        assert store.account_exists("alice@example.com")
        assert store.account_count() == 1

    def test_duplicate_registration(self, auth_service):
        store = IdentityStore(auth_service)
        store.register("alice@example.com", "secret")

        with pytest.raises(ConflictException):
            store.register("alice@example.com", "other")

    def test_account_reference_is_case_sensitive(self, auth_service):
        store = IdentityStore(auth_service)
        store.register("alice@example.com", "secret")

        assert not store.account_exists("Alice@example.com")

    @pytest.mark.parametrize("email,password", [
        ("alice@example.com", "wrong"),
        ("ghost@example.com", "secret"),
    ])
    def test_invalid_credentials(self, auth_service, email, password):
        store = IdentityStore(auth_service)
        store.register("alice@example.com", "secret")

        with pytest.raises(AuthenticationException, match="Invalid credentials"):
            store.authenticate(email, password)

    def test_account_exists_handles_empty_reference(self, auth_service):
        store = IdentityStore(auth_service)

        assert store.account_exists(None) is False
        assert store.account_exists("") is False
