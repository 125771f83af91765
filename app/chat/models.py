"""
Chat system models.

This module defines the data models for the chat system supporting:
- Direct (1:1) conversations between exactly two users
- Group conversations between two or more users

Models:
    Conversation: Container for messages between members
    DirectConversationPair: Helper enforcing one direct conversation per user pair
    Membership: A user's place in a conversation, with their read cursor
    Message: Individual message within a conversation
    Reaction: One emoji per (message, user)
    TypingMarker: Short-lived "is typing" flag per (conversation, user)

Design Decisions:
    - Memberships are fixed at creation; there is no join/leave flow
    - Deleting a message is a soft delete; the body is kept in storage and
      hidden by the serializers
    - Messages outlive their sender (sender becomes NULL) so histories
      and unread counts of the remaining members stay intact
    - The read cursor is a message reference, not a timestamp, so messages
      created in the same instant are ordered by id
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from core.models import BaseModel


class Conversation(BaseModel):
    """
    A direct or group conversation.

    Fields:
        is_group: True for group conversations, False for direct messages
        name: Group display name (empty for direct conversations)
        last_message_at: Creation time of the newest message (NULL until the
            first message); drives conversation list ordering

    Invariants:
        - A direct conversation has exactly two memberships and one
          DirectConversationPair row
        - A group conversation has at least two memberships
    """

    is_group = models.BooleanField(
        default=False,
        help_text="Whether this is a group conversation (False for direct messages)",
    )

    name = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Group name (empty for direct conversations)",
    )

    last_message_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Creation time of the most recent message",
    )

    class Meta:
        db_table = "chat_conversation"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["-last_message_at", "-created_at"],
                name="chat_conv_activity_idx",
            ),
        ]

    def __str__(self) -> str:
        if self.is_group:
            return self.name or f"Group {self.pk}"
        return f"Direct {self.pk}"


class DirectConversationPair(models.Model):
    """
    Enforces uniqueness of direct conversations between two users.

    Stores user pairs in canonical order (lower user id first) so that,
    regardless of who starts the conversation, concurrent creators for the
    same pair collide on one unique key instead of creating duplicates.

    Fields:
        conversation: The direct conversation (OneToOne, serves as PK)
        user_lower: User with lower ID
        user_higher: User with higher ID

    Constraints:
        - UniqueConstraint(user_lower, user_higher): One conversation per pair
        - CheckConstraint(user_lower_id < user_higher_id): Canonical order
    """

    conversation = models.OneToOneField(
        Conversation,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="direct_pair",
        help_text="The direct conversation this pair represents",
    )

    user_lower = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
        help_text="User with lower ID in this conversation pair",
    )

    user_higher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
        help_text="User with higher ID in this conversation pair",
    )

    class Meta:
        db_table = "chat_direct_conversation_pair"
        constraints = [
            models.UniqueConstraint(
                fields=["user_lower", "user_higher"],
                name="unique_direct_conversation_pair",
            ),
            models.CheckConstraint(
                condition=Q(user_lower_id__lt=F("user_higher_id")),
                name="user_lower_less_than_higher",
            ),
        ]

    def __str__(self) -> str:
        return f"DirectPair({self.user_lower_id}, {self.user_higher_id})"

    @staticmethod
    def canonical(user_a_id: int, user_b_id: int) -> tuple[int, int]:
        """Return the pair as (lower_id, higher_id)."""
        return (user_a_id, user_b_id) if user_a_id < user_b_id else (user_b_id, user_a_id)


class Membership(models.Model):
    """
    A user's membership in a conversation.

    Fields:
        conversation: The conversation
        user: The member
        last_read_message: Read cursor (NULL = nothing read yet)
        joined_at: When the membership was created

    Note:
        If the cursor message is removed the cursor resets to NULL and every
        message from other senders counts as unread again.
    """

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="memberships",
        help_text="The conversation",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="chat_memberships",
        help_text="The member",
    )

    last_read_message = models.ForeignKey(
        "Message",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="Most recent message this member has read",
    )

    joined_at = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user became a member",
    )

    class Meta:
        db_table = "chat_membership"
        ordering = ["joined_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["conversation", "user"],
                name="unique_conversation_membership",
            ),
        ]
        indexes = [
            models.Index(fields=["user", "conversation"], name="chat_membership_user_idx"),
        ]

    def __str__(self) -> str:
        return f"Membership(user={self.user_id}, conversation={self.conversation_id})"


class Message(BaseModel):
    """
    A message in a conversation.

    Fields:
        conversation: The conversation
        sender: Author (NULL once the author's account is deleted)
        body: Text content (trimmed on send; may be empty)
        deleted: Soft-delete flag set by the sender

    Ordering:
        Ascending by created_at with id as tie-breaker; this is the order
        used for history and for read cursors.
    """

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="messages",
        help_text="The conversation this message belongs to",
    )

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="chat_messages",
        help_text="User who sent the message",
    )

    body = models.TextField(
        blank=True,
        default="",
        help_text="Message text",
    )

    deleted = models.BooleanField(
        default=False,
        help_text="Whether the sender deleted this message",
    )

    class Meta:
        db_table = "chat_message"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(
                fields=["conversation", "created_at", "id"],
                name="chat_msg_conv_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"Message {self.pk} in conversation {self.conversation_id}"


class Reaction(BaseModel):
    """
    A user's emoji reaction to a message.

    One reaction per (message, user): reacting again replaces the emoji
    and keeps the original created_at, so grouping order is stable.
    """

    message = models.ForeignKey(
        Message,
        on_delete=models.CASCADE,
        related_name="reactions",
        help_text="The message reacted to",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="chat_reactions",
        help_text="User who reacted",
    )

    emoji = models.CharField(
        max_length=32,
        help_text="Emoji character(s)",
    )

    class Meta:
        db_table = "chat_reaction"
        ordering = ["created_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["message", "user"],
                name="unique_reaction_per_user",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.emoji} by {self.user_id} on message {self.message_id}"


class TypingMarker(models.Model):
    """
    "User is typing" marker for a conversation.

    A marker is live while expires_at is in the future. Expired markers are
    ignored by reads and removed lazily on writes and by a periodic sweep.
    """

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="typing_markers",
        help_text="The conversation being typed in",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="chat_typing_markers",
        help_text="User who is typing",
    )

    expires_at = models.DateTimeField(
        db_index=True,
        help_text="When this marker stops counting as typing",
    )

    class Meta:
        db_table = "chat_typing_marker"
        constraints = [
            models.UniqueConstraint(
                fields=["conversation", "user"],
                name="unique_typing_marker",
            ),
        ]

    def __str__(self) -> str:
        return f"Typing(user={self.user_id}, conversation={self.conversation_id})"
