"""
Identity-provider token authentication.

The identity provider issues JWT session tokens; this module verifies them
and resolves the local user. Both the REST API (IdentityTokenAuthentication)
and the WebSocket middleware (chat.middleware) go through
authenticate_identity_token().

Verification:
    - IDENTITY_JWKS_URL set: RS/ES tokens checked against the provider's
      JWKS (keys cached by PyJWKClient)
    - otherwise IDENTITY_JWT_SIGNING_KEY: shared-secret (HS*) tokens
    - issuer / audience checked when configured; exp and sub required

Provisioning:
    The first authenticated request for an unknown "sub" creates the local
    user from the token's profile claims (email, name, picture), mirroring
    the client-side upsert path. Later requests never rewrite the profile;
    the identity webhook keeps it current.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING

import jwt
from django.conf import settings
from rest_framework.authentication import BaseAuthentication, get_authorization_header
from rest_framework.exceptions import AuthenticationFailed

from users.services import ANONYMOUS_DISPLAY_NAME, UserService

if TYPE_CHECKING:
    from typing import Any

    from users.models import User

logger = logging.getLogger(__name__)


@lru_cache(maxsize=4)
def _jwks_client(jwks_url: str) -> jwt.PyJWKClient:
    return jwt.PyJWKClient(jwks_url, cache_keys=True)


def decode_identity_token(token: str) -> dict[str, Any]:
    """
    Verify an identity-provider JWT and return its claims.

    Raises:
        AuthenticationFailed: Verification is not configured or the token
            is invalid, expired or signed by an unknown key
    """
    jwks_url = settings.IDENTITY_JWKS_URL
    signing_key = settings.IDENTITY_JWT_SIGNING_KEY
    issuer = settings.IDENTITY_JWT_ISSUER
    audience = settings.IDENTITY_JWT_AUDIENCE

    options = {"require": ["exp", "sub"]}
    kwargs: dict[str, Any] = {}
    if issuer:
        kwargs["issuer"] = issuer
    if audience:
        kwargs["audience"] = audience
    else:
        options["verify_aud"] = False

    try:
        if jwks_url:
            key = _jwks_client(jwks_url).get_signing_key_from_jwt(token).key
        elif signing_key:
            key = signing_key
        else:
            logger.error("Identity token verification is not configured")
            raise AuthenticationFailed("Token verification is not configured.")

        return jwt.decode(
            token,
            key,
            algorithms=settings.IDENTITY_JWT_ALGORITHMS,
            options=options,
            leeway=settings.IDENTITY_JWT_LEEWAY_SECONDS,
            **kwargs,
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationFailed("Token has expired.")
    except jwt.PyJWTError as e:
        logger.info(f"Rejected identity token: {e}")
        raise AuthenticationFailed("Invalid token.")


def get_user_for_claims(claims: dict[str, Any]) -> User:
    """
    Resolve (provisioning if needed) the local user for verified claims.

    Raises:
        AuthenticationFailed: The user exists but is deactivated
    """
    external_id = claims["sub"]
    user = UserService.get_by_external_id(external_id)

    if user is None:
        user = UserService.upsert(
            external_id=external_id,
            email=claims.get("email") or "",
            display_name=claims.get("name") or ANONYMOUS_DISPLAY_NAME,
            avatar_url=claims.get("picture") or claims.get("image_url") or "",
        )
        logger.info(f"Provisioned user {user.id} on first authenticated request")

    if not user.is_active:
        raise AuthenticationFailed("User account is disabled.")

    return user


def authenticate_identity_token(token: str) -> tuple[User, dict[str, Any]]:
    """Verify a token and return (user, claims)."""
    claims = decode_identity_token(token)
    return get_user_for_claims(claims), claims


class IdentityTokenAuthentication(BaseAuthentication):
    """
    DRF authentication for "Authorization: Bearer <identity JWT>".

    Returns None (letting other authenticators run) when no Bearer header
    is present.
    """

    keyword = "Bearer"

    def authenticate(self, request):
        auth = get_authorization_header(request).split()
        if not auth or auth[0].lower() != self.keyword.lower().encode():
            return None

        if len(auth) != 2:
            raise AuthenticationFailed("Invalid Authorization header.")

        try:
            token = auth[1].decode()
        except UnicodeError:
            raise AuthenticationFailed("Invalid Authorization header.")

        return authenticate_identity_token(token)

    def authenticate_header(self, request):
        return f'{self.keyword} realm="api"'
