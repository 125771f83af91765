"""
Test configuration and fixtures for user directory tests.

Usage:
    def test_example(user, authenticated_client):
        response = authenticated_client.get("/api/v1/users/me/")
        assert response.status_code == 200
"""

import json
import time

import jwt
import pytest
from rest_framework.test import APIClient

from users.tests.factories import UserFactory
from users.tests.helpers import (
    TEST_JWT_SIGNING_KEY,
    TEST_WEBHOOK_SECRET,
    sign_webhook,
)


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def user(db):
    """Create a basic user."""
    return UserFactory(display_name="Current User")


@pytest.fixture
def other_user(db):
    """Create another user."""
    return UserFactory()


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()


@pytest.fixture
def authenticated_client(user):
    """API client authenticated as `user`."""
    client = APIClient()
    client.force_authenticate(user=user)
    return client


# =============================================================================
# Identity Token Fixtures
# =============================================================================


@pytest.fixture
def identity_jwt_settings(settings):
    """Configure shared-secret (HS256) identity token verification."""
    settings.IDENTITY_JWKS_URL = ""
    settings.IDENTITY_JWT_SIGNING_KEY = TEST_JWT_SIGNING_KEY
    settings.IDENTITY_JWT_ALGORITHMS = ["HS256"]
    settings.IDENTITY_JWT_ISSUER = "https://identity.example.com"
    settings.IDENTITY_JWT_AUDIENCE = ""
    settings.IDENTITY_JWT_LEEWAY_SECONDS = 0
    return settings


@pytest.fixture
def make_identity_token(identity_jwt_settings):
    """
    Factory for signed identity tokens.

    Usage:
        token = make_identity_token(sub="user_abc", email="a@example.com")
    """

    def _make(sub="user_token_1", expires_in=300, issuer=None, key=None, **claims):
        now = int(time.time())
        payload = {
            "sub": sub,
            "iss": issuer or identity_jwt_settings.IDENTITY_JWT_ISSUER,
            "iat": now,
            "exp": now + expires_in,
            **claims,
        }
        return jwt.encode(payload, key or TEST_JWT_SIGNING_KEY, algorithm="HS256")

    return _make


# =============================================================================
# Webhook Fixtures
# =============================================================================


@pytest.fixture
def webhook_secret(settings):
    """Configure the identity webhook secret."""
    settings.IDENTITY_WEBHOOK_SECRET = TEST_WEBHOOK_SECRET
    settings.IDENTITY_WEBHOOK_TOLERANCE_SECONDS = 300
    return TEST_WEBHOOK_SECRET


@pytest.fixture
def post_webhook(api_client, webhook_secret):
    """
    POST a signed identity event to the webhook endpoint.

    Usage:
        response = post_webhook({"type": "user.created", "data": {...}})
    """

    def _post(event, **header_overrides):
        body = json.dumps(event).encode("utf-8")
        headers = sign_webhook(body)
        headers.update(header_overrides)
        return api_client.post(
            "/api/v1/users/webhooks/identity/",
            data=body,
            content_type="application/json",
            **headers,
        )

    return _post
