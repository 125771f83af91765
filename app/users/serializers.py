"""
Serializers for the user directory.

Related files:
    - models.py: User
    - views.py: Directory endpoints
    - services.py: UserService (all writes go through it)

Timestamps are rendered as integer epoch milliseconds.
"""

from rest_framework import serializers

from core.serializer_mixins import EpochTimestampMixin
from users.models import User


class UserSerializer(EpochTimestampMixin, serializers.ModelSerializer):
    """
    Public user representation.

    Used by the people list, conversation member lists and message senders.
    """

    class Meta:
        model = User
        fields = [
            "id",
            "external_id",
            "display_name",
            "email",
            "avatar_url",
            "is_online",
            "last_seen_at",
        ]
        read_only_fields = fields


class UserSyncSerializer(serializers.Serializer):
    """
    Request body for POST /api/v1/users/sync/.

    The external id always comes from the authenticated token, never the
    body, so clients can only sync their own profile.
    """

    email = serializers.EmailField(required=False, allow_blank=True, default="")
    display_name = serializers.CharField(
        max_length=255, required=False, allow_blank=True, default=""
    )
    avatar_url = serializers.URLField(
        max_length=1024, required=False, allow_blank=True, default=""
    )


class UserSearchQuerySerializer(serializers.Serializer):
    """Query parameters for the people list."""

    search = serializers.CharField(required=False, allow_blank=True, default="")
