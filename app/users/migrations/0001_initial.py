"""
Create the User model.

Changes:
    - User keyed by identity-provider external_id
    - Presence fields (is_online, last_seen_at)
    - Django auth permissions (groups, user_permissions)
"""

from django.db import migrations, models
import django.utils.timezone

import users.managers


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="User",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("password", models.CharField(max_length=128, verbose_name="password")),
                (
                    "last_login",
                    models.DateTimeField(blank=True, null=True, verbose_name="last login"),
                ),
                (
                    "is_superuser",
                    models.BooleanField(
                        default=False,
                        help_text="Designates that this user has all permissions without explicitly assigning them.",
                        verbose_name="superuser status",
                    ),
                ),
                (
                    "external_id",
                    models.CharField(
                        max_length=255,
                        unique=True,
                        help_text="User id assigned by the identity provider",
                    ),
                ),
                (
                    "email",
                    models.EmailField(
                        max_length=254,
                        blank=True,
                        default="",
                        db_index=True,
                        help_text="Primary email address reported by the identity provider",
                    ),
                ),
                (
                    "display_name",
                    models.CharField(
                        max_length=255,
                        blank=True,
                        default="",
                        help_text="Name shown to other users",
                    ),
                ),
                (
                    "avatar_url",
                    models.URLField(
                        max_length=1024,
                        blank=True,
                        default="",
                        help_text="Profile image URL (empty when the provider has none)",
                    ),
                ),
                (
                    "is_online",
                    models.BooleanField(
                        default=False,
                        db_index=True,
                        help_text="Whether the user currently has an active client",
                    ),
                ),
                (
                    "last_seen_at",
                    models.DateTimeField(
                        default=django.utils.timezone.now,
                        help_text="Last heartbeat or presence transition",
                    ),
                ),
                (
                    "is_active",
                    models.BooleanField(
                        default=True,
                        help_text="Whether this user account is active.",
                    ),
                ),
                (
                    "is_staff",
                    models.BooleanField(
                        default=False,
                        help_text="Whether the user can access the admin site.",
                    ),
                ),
                (
                    "date_joined",
                    models.DateTimeField(
                        auto_now_add=True,
                        help_text="When the local user record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="When the user record was last modified",
                    ),
                ),
                (
                    "groups",
                    models.ManyToManyField(
                        blank=True,
                        help_text="The groups this user belongs to. A user will get all permissions granted to each of their groups.",
                        related_name="user_set",
                        related_query_name="user",
                        to="auth.group",
                        verbose_name="groups",
                    ),
                ),
                (
                    "user_permissions",
                    models.ManyToManyField(
                        blank=True,
                        help_text="Specific permissions for this user.",
                        related_name="user_set",
                        related_query_name="user",
                        to="auth.permission",
                        verbose_name="user permissions",
                    ),
                ),
            ],
            options={
                "verbose_name": "user",
                "verbose_name_plural": "users",
                "db_table": "users_user",
                "ordering": ["display_name", "id"],
            },
            managers=[
                ("objects", users.managers.UserManager()),
            ],
        ),
    ]
