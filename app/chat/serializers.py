"""
Serializers for chat API.

This module provides serializers for the chat system:
- Conversation serializers (list rows, detail, create)
- Message serializers (read, create)
- Reaction, typing and presence serializers

Serializer Hierarchy:
    ConversationSummarySerializer: Conversation list row (members, last
        message, unread count, own membership)
    ConversationDetailSerializer: One conversation with members
    DirectConversationCreateSerializer / GroupConversationCreateSerializer:
        Creation input
    MarkAsReadSerializer: Read cursor input

    MessageSerializer: Message with sender and soft-delete placeholder
    MessageCreateSerializer: Send input

    ReactionGroupSerializer: Reactions grouped by emoji
    ReactionCreateSerializer: Reaction input

    PresenceSerializer / BatchPresenceRequestSerializer: Presence

Design Decisions:
    - Read and write serializers are separate
    - Deleted message bodies are replaced with a placeholder on output
    - Timestamps are epoch milliseconds (core.serializer_mixins)
    - Summary/detail serializers read the service dataclasses directly and
      flatten the conversation fields to the top level
"""

from __future__ import annotations

from rest_framework import serializers

from chat.constants import CONVERSATION_CONFIG, MESSAGE_CONFIG, REACTION_CONFIG
from chat.models import Conversation, Membership, Message
from core.serializer_mixins import EpochMillisecondsField, EpochTimestampMixin
from users.serializers import UserSerializer


# =============================================================================
# Message Serializers
# =============================================================================


class MessageSerializer(EpochTimestampMixin, serializers.ModelSerializer):
    """
    Message with its sender.

    sender is null once the author's account is deleted. A deleted message
    keeps deleted=true and its body is replaced by the placeholder text.
    """

    conversation_id = serializers.IntegerField(read_only=True)
    sender_id = serializers.IntegerField(read_only=True, allow_null=True)
    sender = UserSerializer(read_only=True, allow_null=True)
    body = serializers.SerializerMethodField()

    class Meta:
        model = Message
        fields = [
            "id",
            "conversation_id",
            "sender_id",
            "sender",
            "body",
            "deleted",
            "created_at",
        ]
        read_only_fields = fields

    def get_body(self, obj: Message) -> str:
        """Return the body, or the placeholder for deleted messages."""
        if obj.deleted:
            return MESSAGE_CONFIG.DELETED_PLACEHOLDER
        return obj.body


class MessageCreateSerializer(serializers.Serializer):
    """Request body for sending a message. Whitespace is trimmed; empty is allowed."""

    body = serializers.CharField(
        allow_blank=True,
        max_length=MESSAGE_CONFIG.MAX_BODY_LENGTH,
        help_text="Message text",
    )


# =============================================================================
# Conversation Serializers
# =============================================================================


class MembershipSerializer(EpochTimestampMixin, serializers.ModelSerializer):
    """The caller's own membership: read cursor and join time."""

    user_id = serializers.IntegerField(read_only=True)
    last_read_message_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = Membership
        fields = ["id", "user_id", "last_read_message_id", "joined_at"]
        read_only_fields = fields


class ConversationSerializer(EpochTimestampMixin, serializers.ModelSerializer):
    """Bare conversation, returned by the create endpoints."""

    class Meta:
        model = Conversation
        fields = ["id", "is_group", "name", "created_at", "last_message_at"]
        read_only_fields = fields


class ConversationDetailSerializer(serializers.Serializer):
    """
    Serializes chat.services.ConversationDetail.

    Conversation fields are flattened next to members / other_user.
    """

    id = serializers.IntegerField(source="conversation.id")
    is_group = serializers.BooleanField(source="conversation.is_group")
    name = serializers.CharField(source="conversation.name")
    created_at = EpochMillisecondsField(source="conversation.created_at")
    last_message_at = EpochMillisecondsField(
        source="conversation.last_message_at", allow_null=True
    )
    members = UserSerializer(many=True)
    other_user = UserSerializer(allow_null=True)
    membership = MembershipSerializer()


class ConversationSummarySerializer(ConversationDetailSerializer):
    """Serializes chat.services.ConversationSummary (conversation list row)."""

    last_message = MessageSerializer(allow_null=True)
    unread_count = serializers.IntegerField()


class DirectConversationCreateSerializer(serializers.Serializer):
    """Request body for opening a direct conversation."""

    user_id = serializers.IntegerField(help_text="The other participant's user id")


class GroupConversationCreateSerializer(serializers.Serializer):
    """
    Request body for creating a group.

    The creator is added automatically; member_ids may include them.
    """

    name = serializers.CharField(
        allow_blank=True,
        required=False,
        default="",
        max_length=CONVERSATION_CONFIG.MAX_GROUP_NAME_LENGTH,
        help_text='Group name (blank becomes "Unnamed Group")',
    )
    member_ids = serializers.ListField(
        child=serializers.IntegerField(),
        allow_empty=True,
        help_text="User ids to add besides the creator",
    )


class MarkAsReadSerializer(serializers.Serializer):
    """Request body for moving the read cursor."""

    message_id = serializers.IntegerField(help_text="Last message the caller has read")


# =============================================================================
# Reaction Serializers
# =============================================================================


class ReactionGroupSerializer(serializers.Serializer):
    """Reactions sharing one emoji."""

    emoji = serializers.CharField()
    count = serializers.IntegerField()
    user_ids = serializers.ListField(child=serializers.IntegerField())


class ReactionCreateSerializer(serializers.Serializer):
    """
    Request body for reacting to a message.

    Length is checked by ReactionService so the error carries
    VALIDATION_ERROR.
    """

    emoji = serializers.CharField(
        allow_blank=True,
        help_text=f"Emoji, at most {REACTION_CONFIG.MAX_EMOJI_LENGTH} characters",
    )


class ReactionSerializer(serializers.Serializer):
    """The caller's reaction after add_reaction."""

    id = serializers.IntegerField()
    message_id = serializers.IntegerField()
    user_id = serializers.IntegerField()
    emoji = serializers.CharField()
    created_at = EpochMillisecondsField()


# =============================================================================
# Presence Serializers
# =============================================================================


class PresenceSerializer(serializers.Serializer):
    """Serializes chat.services.PresenceInfo."""

    user_id = serializers.IntegerField()
    is_online = serializers.BooleanField()
    last_seen_at = EpochMillisecondsField()


class BatchPresenceRequestSerializer(serializers.Serializer):
    """Request body for batch presence lookup."""

    user_ids = serializers.ListField(
        child=serializers.IntegerField(),
        allow_empty=True,
        max_length=500,
        help_text="User ids to look up (unknown ids are skipped)",
    )
