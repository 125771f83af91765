"""
Tests for identity-provider token authentication.

Covers decode_identity_token, first-request provisioning, and the DRF
authentication class end to end through /api/v1/users/me/.
"""

import pytest
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.test import APIClient

from users.authentication import authenticate_identity_token, decode_identity_token
from users.models import User
from users.tests.factories import UserFactory

ME_URL = "/api/v1/users/me/"


class TestDecodeIdentityToken:
    def test_returns_claims_for_valid_token(self, make_identity_token):
        claims = decode_identity_token(make_identity_token(sub="user_abc"))

        assert claims["sub"] == "user_abc"

    def test_expired_token_is_rejected(self, make_identity_token):
        token = make_identity_token(expires_in=-60)

        with pytest.raises(AuthenticationFailed):
            decode_identity_token(token)

    def test_wrong_issuer_is_rejected(self, make_identity_token):
        token = make_identity_token(issuer="https://evil.example.com")

        with pytest.raises(AuthenticationFailed):
            decode_identity_token(token)

    def test_wrong_key_is_rejected(self, make_identity_token):
        token = make_identity_token(key="another-signing-key-that-is-long-enough")

        with pytest.raises(AuthenticationFailed):
            decode_identity_token(token)

    def test_unconfigured_verification_is_rejected(self, make_identity_token, settings):
        token = make_identity_token()
        settings.IDENTITY_JWT_SIGNING_KEY = ""
        settings.IDENTITY_JWKS_URL = ""

        with pytest.raises(AuthenticationFailed):
            decode_identity_token(token)


@pytest.mark.django_db
class TestAuthenticateIdentityToken:
    def test_provisions_unknown_user(self, make_identity_token):
        """
        The first authenticated request creates the local user.

        Why it matters: The webhook may lag behind the first sign-in.
        """
        token = make_identity_token(
            sub="user_first", email="first@example.com", name="First Timer"
        )

        user, claims = authenticate_identity_token(token)

        assert user.external_id == "user_first"
        assert user.display_name == "First Timer"
        assert user.email == "first@example.com"
        assert claims["sub"] == "user_first"

    def test_existing_user_profile_is_not_rewritten(self, make_identity_token):
        existing = UserFactory(external_id="user_known", display_name="Known")
        token = make_identity_token(sub="user_known", name="Different")

        user, _ = authenticate_identity_token(token)

        assert user.pk == existing.pk
        assert user.display_name == "Known"

    def test_inactive_user_is_rejected(self, make_identity_token):
        UserFactory(external_id="user_off", is_active=False)

        with pytest.raises(AuthenticationFailed):
            authenticate_identity_token(make_identity_token(sub="user_off"))


@pytest.mark.django_db
class TestIdentityTokenAuthentication:
    def test_bearer_token_authenticates_request(self, make_identity_token):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {make_identity_token(sub='user_api')}")

        response = client.get(ME_URL)

        assert response.status_code == status.HTTP_200_OK
        assert response.data["external_id"] == "user_api"
        assert User.objects.filter(external_id="user_api").exists()

    def test_invalid_token_returns_401(self, identity_jwt_settings):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION="Bearer not.a.jwt")

        response = client.get(ME_URL)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_malformed_header_returns_401(self, identity_jwt_settings):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION="Bearer")

        response = client.get(ME_URL)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
