"""
User model.

The local User row mirrors a user of the external identity provider. It is
created on the first webhook sync or the first authenticated request, patched
by later syncs, and carries the presence flags that chat.services.PresenceService
maintains.

Related files:
    - managers.py: UserManager (external_id based creation)
    - services.py: UserService (lookup, upsert, list, delete)
    - webhooks.py: identity-provider sync endpoint

Invariants:
    - external_id is unique
    - is_online / last_seen_at are never reset by profile syncs
"""

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models
from django.utils import timezone

from users.managers import UserManager


class User(AbstractBaseUser, PermissionsMixin):
    """
    Chat user, keyed by the identity provider's user id.

    Fields:
        external_id: Identity provider user id (unique, USERNAME_FIELD)
        email: Primary email reported by the identity provider (may be empty)
        display_name: Name shown in the UI
        avatar_url: Profile image URL (may be empty)
        is_online: Presence flag driven by heartbeats / explicit offline calls
        last_seen_at: Last presence transition or heartbeat
        is_active / is_staff: Django auth bookkeeping (admin access)
        date_joined / updated_at: Row timestamps

    Usage:
        user = User.objects.create_user(external_id="user_2abc", display_name="Alice")
    """

    external_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="User id assigned by the identity provider",
    )

    email = models.EmailField(
        max_length=254,
        blank=True,
        default="",
        db_index=True,
        help_text="Primary email address reported by the identity provider",
    )

    display_name = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Name shown to other users",
    )

    avatar_url = models.URLField(
        max_length=1024,
        blank=True,
        default="",
        help_text="Profile image URL (empty when the provider has none)",
    )

    is_online = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether the user currently has an active client",
    )

    last_seen_at = models.DateTimeField(
        default=timezone.now,
        help_text="Last heartbeat or presence transition",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the local user record was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "external_id"
    EMAIL_FIELD = "email"
    REQUIRED_FIELDS = ["email"]

    objects = UserManager()

    class Meta:
        db_table = "users_user"
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["display_name", "id"]

    def __str__(self):
        return self.display_name or self.external_id

    def get_full_name(self):
        return self.display_name or self.email or self.external_id

    def get_short_name(self):
        return self.display_name.split(" ")[0] if self.display_name else self.external_id
