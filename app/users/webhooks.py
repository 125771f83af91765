"""
Identity-provider webhook endpoint.

The identity provider delivers user lifecycle events signed with the
Standard Webhooks scheme (svix headers):

    svix-id:        message id
    svix-timestamp: unix seconds
    svix-signature: space-separated "v1,<base64 HMAC-SHA256>" entries

The signed content is "{svix-id}.{svix-timestamp}.{raw body}" and the key is
the base64 part of IDENTITY_WEBHOOK_SECRET ("whsec_..." prefix optional).

Endpoint:
    POST /api/v1/users/webhooks/identity/

Event handling:
    user.created / user.updated -> UserService.sync_from_identity_event
    user.deleted                -> UserService.delete_by_external_id
    anything else               -> acknowledged and ignored

Responses:
    200 processed (or ignored)
    400 missing/invalid signature, or unparseable payload
    500 secret not configured, or the user sync failed (provider retries)
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import logging
import time
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import DatabaseError
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import serializers, status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import (
    SignatureVerificationError,
    UpstreamSyncError,
    ValidationError,
)
from users.services import UserService

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

SECRET_PREFIX = "whsec_"
SIGNATURE_VERSION = "v1"
SYNC_EVENTS = frozenset({"user.created", "user.updated"})
DELETE_EVENT = "user.deleted"


class WebhookSuccessResponseSerializer(serializers.Serializer):
    """Success response from the identity webhook."""

    success = serializers.BooleanField(default=True)


class WebhookErrorResponseSerializer(serializers.Serializer):
    """Error response from the identity webhook."""

    error = serializers.CharField(help_text="Error description")
    error_code = serializers.CharField(required=False, help_text="Machine-readable code")


def _signing_key(secret: str) -> bytes:
    """Decode the webhook secret into raw HMAC key bytes."""
    encoded = secret[len(SECRET_PREFIX):] if secret.startswith(SECRET_PREFIX) else secret
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        # Not base64: use the configured secret verbatim
        return secret.encode("utf-8")


def verify_webhook_signature(
    secret: str,
    headers: Mapping[str, str],
    payload: bytes,
    tolerance_seconds: int | None = None,
    now: float | None = None,
) -> None:
    """
    Verify a Standard Webhooks (svix) signature.

    Args:
        secret: Configured webhook secret
        headers: Request headers (case-insensitive mapping)
        payload: Raw request body
        tolerance_seconds: Allowed clock skew for svix-timestamp
        now: Current unix time (defaults to time.time())

    Raises:
        SignatureVerificationError: Headers missing, timestamp outside the
            tolerance window, or no signature matches
    """
    msg_id = headers.get("svix-id")
    timestamp = headers.get("svix-timestamp")
    signature_header = headers.get("svix-signature")

    if not msg_id or not timestamp or not signature_header:
        raise SignatureVerificationError("Missing signature headers")

    try:
        sent_at = int(timestamp)
    except ValueError:
        raise SignatureVerificationError("Invalid signature timestamp")

    if tolerance_seconds is None:
        tolerance_seconds = settings.IDENTITY_WEBHOOK_TOLERANCE_SECONDS
    current = time.time() if now is None else now
    if abs(current - sent_at) > tolerance_seconds:
        raise SignatureVerificationError("Signature timestamp outside tolerance")

    signed_content = f"{msg_id}.{timestamp}.".encode("utf-8") + payload
    expected = base64.b64encode(
        hmac.new(_signing_key(secret), signed_content, hashlib.sha256).digest()
    ).decode("ascii")

    for entry in signature_header.split():
        version, _, signature = entry.partition(",")
        if version == SIGNATURE_VERSION and hmac.compare_digest(expected, signature):
            return

    raise SignatureVerificationError("Invalid signature")


class IdentityWebhookView(APIView):
    """
    Identity-provider user lifecycle webhook.

    Authentication is the payload signature, so DRF authentication and
    throttling are disabled for this view.
    """

    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = []

    @extend_schema(
        operation_id="identity_webhook",
        summary="Identity provider webhook",
        description=(
            "Receives user.created, user.updated and user.deleted events from the "
            "identity provider. Requires svix-id, svix-timestamp and svix-signature "
            "headers. Unhandled event types are acknowledged and ignored."
        ),
        request=None,
        responses={
            200: WebhookSuccessResponseSerializer,
            400: OpenApiResponse(
                response=WebhookErrorResponseSerializer,
                description="Missing or invalid signature, or malformed payload",
            ),
            500: OpenApiResponse(
                response=WebhookErrorResponseSerializer,
                description="Secret not configured or user sync failed",
            ),
        },
        tags=["Users - Webhooks"],
    )
    def post(self, request):
        """Verify and process an identity-provider event."""
        secret = settings.IDENTITY_WEBHOOK_SECRET
        if not secret:
            logger.error("IDENTITY_WEBHOOK_SECRET is not configured")
            return Response(
                {"error": "Webhook secret not configured"},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        payload = request.body

        try:
            verify_webhook_signature(secret, request.headers, payload)
        except SignatureVerificationError as e:
            logger.warning(f"Identity webhook rejected: {e.message}")
            return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)

        try:
            event = json.loads(payload)
        except (ValueError, UnicodeDecodeError):
            logger.warning("Identity webhook payload is not valid JSON")
            return Response(
                {"error": "Invalid payload", "error_code": "VALIDATION_ERROR"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        if not isinstance(event, dict):
            return Response(
                {"error": "Invalid payload", "error_code": "VALIDATION_ERROR"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        event_type = event.get("type")
        data = event.get("data") or {}
        if not isinstance(data, dict):
            logger.warning(f"Identity webhook {event_type} data is not an object")
            return Response(
                {"error": "Invalid payload", "error_code": "VALIDATION_ERROR"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        if event_type in SYNC_EVENTS:
            try:
                user = UserService.sync_from_identity_event(data)
            except ValidationError as e:
                logger.warning(f"Identity webhook {event_type} payload rejected: {e}")
                return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)
            except UpstreamSyncError as e:
                logger.error(
                    f"Identity webhook {event_type} sync failed: {e}", exc_info=True
                )
                return Response(e.to_dict(), status=status.HTTP_500_INTERNAL_SERVER_ERROR)

            logger.info(f"Identity webhook {event_type} synced user {user.id}")

        elif event_type == DELETE_EVENT:
            external_id = data.get("id")
            if external_id:
                try:
                    UserService.delete_by_external_id(external_id)
                except DatabaseError:
                    # Deletion is best-effort; the provider is not asked to retry
                    logger.exception(
                        f"Identity webhook failed to delete user {external_id}"
                    )
            else:
                logger.warning("Identity webhook user.deleted event without user id")

        else:
            logger.debug(f"Ignoring identity webhook event type {event_type!r}")

        return Response({"success": True}, status=status.HTTP_200_OK)
