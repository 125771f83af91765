"""
Tests for the identity-provider webhook.

POST /api/v1/users/webhooks/identity/

Covers signature verification, event dispatch, and failure status codes.
"""

import json
import time
from unittest import mock

import pytest
from django.db import DatabaseError
from rest_framework import status

from core.exceptions import SignatureVerificationError
from users.models import User
from users.services import UserService
from users.tests.factories import UserFactory
from users.tests.helpers import (
    TEST_WEBHOOK_SECRET,
    identity_user_payload,
    sign_webhook,
)
from users.webhooks import verify_webhook_signature

WEBHOOK_URL = "/api/v1/users/webhooks/identity/"


def _headers(body, **kwargs):
    """svix headers keyed the way request.headers exposes them."""
    extra = sign_webhook(body, **kwargs)
    return {
        "svix-id": extra["HTTP_SVIX_ID"],
        "svix-timestamp": extra["HTTP_SVIX_TIMESTAMP"],
        "svix-signature": extra["HTTP_SVIX_SIGNATURE"],
    }


class TestVerifyWebhookSignature:
    """Unit tests for verify_webhook_signature."""

    def test_accepts_valid_signature(self):
        body = b'{"type": "user.created"}'

        verify_webhook_signature(
            TEST_WEBHOOK_SECRET, _headers(body), body, tolerance_seconds=300
        )

    def test_accepts_when_any_listed_signature_matches(self):
        body = b"{}"
        headers = _headers(body)
        headers["svix-signature"] = "v1,bm9wZQ== " + headers["svix-signature"]

        verify_webhook_signature(TEST_WEBHOOK_SECRET, headers, body, tolerance_seconds=300)

    def test_rejects_tampered_body(self):
        """
        A body that differs from the signed one is rejected.

        Why it matters: The signature is the only thing authenticating
        the provider.
        """
        headers = _headers(b'{"type": "user.created"}')

        with pytest.raises(SignatureVerificationError):
            verify_webhook_signature(
                TEST_WEBHOOK_SECRET, headers, b'{"type": "user.deleted"}',
                tolerance_seconds=300,
            )

    def test_rejects_missing_headers(self):
        with pytest.raises(SignatureVerificationError):
            verify_webhook_signature(TEST_WEBHOOK_SECRET, {}, b"{}", tolerance_seconds=300)

    def test_rejects_stale_timestamp(self):
        """Replays outside the tolerance window are rejected."""
        body = b"{}"
        old = int(time.time()) - 3600

        with pytest.raises(SignatureVerificationError):
            verify_webhook_signature(
                TEST_WEBHOOK_SECRET, _headers(body, timestamp=old), body,
                tolerance_seconds=300,
            )

    def test_rejects_non_numeric_timestamp(self):
        body = b"{}"
        headers = _headers(body)
        headers["svix-timestamp"] = "yesterday"

        with pytest.raises(SignatureVerificationError):
            verify_webhook_signature(TEST_WEBHOOK_SECRET, headers, body, tolerance_seconds=300)


@pytest.mark.django_db
class TestIdentityWebhookView:
    """Integration tests for the webhook endpoint."""

    def test_secret_not_configured_returns_500(self, api_client, settings):
        settings.IDENTITY_WEBHOOK_SECRET = ""

        response = api_client.post(WEBHOOK_URL, data=b"{}", content_type="application/json")

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.data["error"] == "Webhook secret not configured"

    def test_missing_signature_headers_returns_400(self, api_client, webhook_secret):
        response = api_client.post(WEBHOOK_URL, data=b"{}", content_type="application/json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_invalid_signature_returns_400(self, post_webhook):
        response = post_webhook(
            {"type": "user.created", "data": identity_user_payload()},
            HTTP_SVIX_SIGNATURE="v1,aW52YWxpZA==",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "INVALID_SIGNATURE"
        assert not User.objects.exists()

    def test_user_created_syncs_user(self, post_webhook):
        """
        user.created creates the local user from the payload.

        Why it matters: This is how users appear in the directory before
        they ever open the app.
        """
        response = post_webhook(
            {"type": "user.created", "data": identity_user_payload(external_id="user_wh")}
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"success": True}
        user = User.objects.get(external_id="user_wh")
        assert user.display_name == "Ada Lovelace"
        assert user.is_online is False

    def test_user_updated_patches_profile_not_presence(self, post_webhook):
        UserFactory(external_id="user_wh", display_name="Old", is_online=True)

        response = post_webhook(
            {
                "type": "user.updated",
                "data": identity_user_payload(
                    external_id="user_wh", first_name="New", last_name="Name"
                ),
            }
        )

        assert response.status_code == status.HTTP_200_OK
        user = User.objects.get(external_id="user_wh")
        assert user.display_name == "New Name"
        assert user.is_online is True

    def test_sync_failure_returns_500(self, post_webhook):
        """
        A failed sync returns 500 so the provider retries.
        """
        with mock.patch.object(UserService, "upsert", side_effect=DatabaseError("down")):
            response = post_webhook(
                {"type": "user.created", "data": identity_user_payload()}
            )

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR

    def test_user_deleted_removes_user(self, post_webhook):
        UserFactory(external_id="user_bye")

        response = post_webhook({"type": "user.deleted", "data": {"id": "user_bye"}})

        assert response.status_code == status.HTTP_200_OK
        assert not User.objects.filter(external_id="user_bye").exists()

    def test_user_deleted_failure_still_returns_200(self, post_webhook):
        """
        Deletion failures are logged, not retried.
        """
        UserFactory(external_id="user_stuck")

        with mock.patch.object(
            UserService, "delete_by_external_id", side_effect=DatabaseError("down")
        ):
            response = post_webhook({"type": "user.deleted", "data": {"id": "user_stuck"}})

        assert response.status_code == status.HTTP_200_OK

    def test_unknown_user_deleted_returns_200(self, post_webhook):
        response = post_webhook({"type": "user.deleted", "data": {"id": "user_nobody"}})

        assert response.status_code == status.HTTP_200_OK

    def test_unhandled_event_type_is_acknowledged(self, post_webhook):
        response = post_webhook({"type": "session.created", "data": {"id": "sess_1"}})

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"success": True}

    def test_invalid_json_returns_400(self, api_client, webhook_secret):
        body = b"not json"

        response = api_client.post(
            WEBHOOK_URL,
            data=body,
            content_type="application/json",
            **sign_webhook(body),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_signature_covers_exact_bytes(self, api_client, webhook_secret):
        """Whitespace differences in the JSON body break the signature."""
        event = {"type": "user.created", "data": identity_user_payload()}
        signed_body = json.dumps(event).encode()
        sent_body = json.dumps(event, indent=2).encode()

        response = api_client.post(
            WEBHOOK_URL,
            data=sent_body,
            content_type="application/json",
            **sign_webhook(signed_body),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.parametrize("data", ["user_1", 42, ["user_1"]])
    @pytest.mark.parametrize("event_type", ["user.created", "user.deleted"])
    def test_non_object_data_returns_400(self, post_webhook, event_type, data):
        """
        A signed event whose data is not an object is rejected, not retried.

        Why it matters: a 500 makes the provider resend an event that can
        never be processed.
        """
        response = post_webhook({"type": event_type, "data": data})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "VALIDATION_ERROR"
        assert not User.objects.exists()

    def test_bare_string_email_entries_return_400(self, post_webhook):
        data = identity_user_payload(external_id="user_wh")
        data["email_addresses"] = ["ada@example.com"]

        response = post_webhook({"type": "user.created", "data": data})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "VALIDATION_ERROR"
        assert not User.objects.filter(external_id="user_wh").exists()
