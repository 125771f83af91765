"""
User Directory service layer.

Services:
    UserService: lookup, upsert, people list, deletion, identity sync

Design Principles:
    - upsert never touches presence fields (is_online / last_seen_at);
      those belong to chat.services.PresenceService
    - Identity-provider payload mapping lives here so the webhook view and
      the token authentication provision users the same way
    - Directory changes are broadcast to the directory group after commit

Usage:
    from users.services import UserService

    user = UserService.get_by_external_id("user_2abc")
    people = UserService.list_excluding(current_user_id=user.id, search="ali")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import DatabaseError, IntegrityError
from django.db.models import Q
from django.utils import timezone

from core.exceptions import UpstreamSyncError, ValidationError
from core.realtime import DIRECTORY_GROUP, broadcast
from core.services import BaseService
from users.models import User

if TYPE_CHECKING:
    from typing import Any

ANONYMOUS_DISPLAY_NAME = "Anonymous"


class UserService(BaseService):
    """
    Service for the user directory.

    Methods:
        get_by_external_id: Unique lookup by identity-provider id
        upsert: Create or patch profile fields
        list_excluding: People list for the current user
        delete_by_external_id: Hard delete on identity-provider deletion
        profile_from_identity_payload: Map provider payload to profile fields
        sync_from_identity_event: Upsert from a verified webhook payload
    """

    @classmethod
    def get_by_external_id(cls, external_id: str) -> User | None:
        """Return the user with this identity-provider id, or None."""
        return User.objects.filter(external_id=external_id).first()

    @classmethod
    def upsert(
        cls,
        external_id: str,
        email: str,
        display_name: str,
        avatar_url: str,
    ) -> User:
        """
        Create the user or patch its profile fields.

        New users start offline with last_seen_at=now. Existing users only
        get email, display_name and avatar_url overwritten; presence state
        is left alone. Calling twice with the same arguments is a no-op on
        the second call apart from updated_at.

        A concurrent creator for the same external_id is tolerated: the
        loser of the unique-constraint race re-reads and patches the row.

        Args:
            external_id: Identity provider user id
            email: Primary email (may be empty)
            display_name: Display name
            avatar_url: Avatar URL (may be empty)

        Returns:
            The created or updated User
        """
        email = User.objects.normalize_email(email or "")
        display_name = display_name or ""
        avatar_url = avatar_url or ""

        with cls.atomic():
            user = (
                User.objects.select_for_update()
                .filter(external_id=external_id)
                .first()
            )
            if user is None:
                try:
                    with cls.atomic():
                        user = User.objects.create_user(
                            external_id=external_id,
                            email=email,
                            display_name=display_name,
                            avatar_url=avatar_url,
                            is_online=False,
                            last_seen_at=timezone.now(),
                        )
                except IntegrityError:
                    user = User.objects.select_for_update().get(
                        external_id=external_id
                    )
                else:
                    cls.get_logger().info(
                        f"Created user {user.id} for external id {external_id}"
                    )
                    broadcast(DIRECTORY_GROUP, "user.changed", {"user_id": user.id})
                    return user

            user.email = email
            user.display_name = display_name
            user.avatar_url = avatar_url
            user.save(
                update_fields=["email", "display_name", "avatar_url", "updated_at"]
            )
            broadcast(DIRECTORY_GROUP, "user.changed", {"user_id": user.id})

        cls.get_logger().debug(f"Updated profile for user {user.id}")
        return user

    @classmethod
    def list_excluding(
        cls,
        current_user_id: int,
        search: str | None = None,
    ) -> list[User]:
        """
        List every user except the caller.

        A search term that is non-blank after trimming filters on a
        case-insensitive substring of display_name or email. Online users
        come first, then everyone by display name (case-insensitive).

        Args:
            current_user_id: The caller (excluded from results)
            search: Optional search text

        Returns:
            List of users in display order
        """
        queryset = User.objects.exclude(id=current_user_id)

        term = (search or "").strip()
        if term:
            queryset = queryset.filter(
                Q(display_name__icontains=term) | Q(email__icontains=term)
            )

        return sorted(
            queryset,
            key=lambda user: (not user.is_online, user.display_name.casefold()),
        )

    @classmethod
    def delete_by_external_id(cls, external_id: str) -> bool:
        """
        Hard delete the user with this external id.

        Returns:
            True when a user was deleted, False when none existed
        """
        with cls.atomic():
            user = User.objects.filter(external_id=external_id).first()
            if user is None:
                cls.get_logger().debug(
                    f"No user for external id {external_id}, nothing to delete"
                )
                return False

            user_id = user.id
            user.delete()
            broadcast(DIRECTORY_GROUP, "user.deleted", {"user_id": user_id})

        cls.get_logger().info(f"Deleted user {user_id} (external id {external_id})")
        return True

    @staticmethod
    def profile_from_identity_payload(data: dict[str, Any]) -> dict[str, str]:
        """
        Map an identity-provider user object to upsert() keyword arguments.

        Rules:
            email: the first listed email address, else ""
            display_name: "first last" trimmed, else "Anonymous"
            avatar_url: image_url or ""

        Raises:
            ValidationError: The payload carries no user id, or its email
                addresses are not a list of objects
        """
        if not isinstance(data, dict):
            raise ValidationError(
                "Identity payload must be an object",
                details={"field": "data"},
            )

        external_id = data.get("id")
        if not external_id:
            raise ValidationError(
                "Identity payload has no user id",
                details={"field": "data.id"},
            )

        addresses = data.get("email_addresses") or []
        if not isinstance(addresses, list) or not all(
            isinstance(address, dict) for address in addresses
        ):
            raise ValidationError(
                "Identity payload email_addresses must be a list of objects",
                details={"field": "data.email_addresses"},
            )
        first_address = addresses[0] if addresses else {}

        first_name = data.get("first_name") or ""
        last_name = data.get("last_name") or ""

        return {
            "external_id": external_id,
            "email": first_address.get("email_address") or "",
            "display_name": f"{first_name} {last_name}".strip()
            or ANONYMOUS_DISPLAY_NAME,
            "avatar_url": data.get("image_url") or "",
        }

    @classmethod
    def sync_from_identity_event(cls, data: dict[str, Any]) -> User:
        """
        Upsert a user from a verified user.created / user.updated payload.

        Raises:
            ValidationError: Payload cannot be mapped to a user
            UpstreamSyncError: The database write failed
        """
        profile = cls.profile_from_identity_payload(data)
        try:
            return cls.upsert(**profile)
        except DatabaseError as e:
            raise UpstreamSyncError(
                "Failed to sync user from identity provider",
                details={"external_id": profile["external_id"]},
            ) from e
