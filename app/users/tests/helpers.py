"""
Helpers for building identity-provider test data.

Usage:
    from users.tests.helpers import identity_user_payload, sign_webhook
"""

import base64
import hashlib
import hmac
import time

TEST_JWT_SIGNING_KEY = "test-identity-signing-key-with-enough-length"
TEST_WEBHOOK_KEY = b"identity-webhook-test-key"
TEST_WEBHOOK_SECRET = "whsec_" + base64.b64encode(TEST_WEBHOOK_KEY).decode("ascii")


def sign_webhook(body: bytes, msg_id="msg_test", timestamp=None, key=TEST_WEBHOOK_KEY):
    """Build svix headers for a body, as Django test-client extra kwargs."""
    timestamp = str(int(time.time()) if timestamp is None else timestamp)
    signed = f"{msg_id}.{timestamp}.".encode("utf-8") + body
    signature = base64.b64encode(hmac.new(key, signed, hashlib.sha256).digest()).decode()
    return {
        "HTTP_SVIX_ID": msg_id,
        "HTTP_SVIX_TIMESTAMP": timestamp,
        "HTTP_SVIX_SIGNATURE": f"v1,{signature}",
    }


def identity_user_payload(
    external_id="user_ext_1",
    first_name="Ada",
    last_name="Lovelace",
    emails=("ada@example.com",),
    image_url="https://img.example.com/ada.png",
):
    """Build an identity-provider user object."""
    return {
        "id": external_id,
        "first_name": first_name,
        "last_name": last_name,
        "email_addresses": [
            {"id": f"idn_{i}", "email_address": email} for i, email in enumerate(emails)
        ],
        "image_url": image_url,
    }
