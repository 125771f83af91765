"""
Django admin configuration for the user directory.

Users are created by the identity provider sync, so the admin is read-mostly:
profile and presence fields can be inspected and corrected, not invented.
"""

from django.contrib import admin

from users.models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    """Admin configuration for User."""

    list_display = (
        "external_id",
        "display_name",
        "email",
        "is_online",
        "last_seen_at",
        "is_staff",
    )
    list_filter = ("is_online", "is_active", "is_staff", "is_superuser")
    search_fields = ("external_id", "display_name", "email")
    ordering = ("display_name", "id")

    fieldsets = (
        (None, {"fields": ("external_id", "display_name", "email", "avatar_url")}),
        ("Presence", {"fields": ("is_online", "last_seen_at")}),
        (
            "Permissions",
            {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")},
        ),
        ("Important dates", {"fields": ("date_joined", "updated_at", "last_login")}),
    )
    readonly_fields = ("external_id", "date_joined", "updated_at", "last_login")
    filter_horizontal = ("groups", "user_permissions")
