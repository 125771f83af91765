"""
Create the chat models.

Changes:
    - Conversation, DirectConversationPair (one DM per user pair)
    - Message with soft delete, ordered by (created_at, id)
    - Membership with a message-based read cursor
    - Reaction (one per message and user)
    - TypingMarker with expiry
"""

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


def _timestamps():
    return [
        (
            "created_at",
            models.DateTimeField(
                auto_now_add=True,
                db_index=True,
                help_text="Timestamp when this record was created",
            ),
        ),
        (
            "updated_at",
            models.DateTimeField(
                auto_now=True,
                help_text="Timestamp when this record was last modified",
            ),
        ),
    ]


def _id():
    return (
        "id",
        models.BigAutoField(
            auto_created=True,
            primary_key=True,
            serialize=False,
            verbose_name="ID",
        ),
    )


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("users", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Conversation",
            fields=[
                _id(),
                *_timestamps(),
                (
                    "is_group",
                    models.BooleanField(
                        default=False,
                        help_text="Whether this is a group conversation (False for direct messages)",
                    ),
                ),
                (
                    "name",
                    models.CharField(
                        blank=True,
                        default="",
                        max_length=255,
                        help_text="Group name (empty for direct conversations)",
                    ),
                ),
                (
                    "last_message_at",
                    models.DateTimeField(
                        blank=True,
                        db_index=True,
                        null=True,
                        help_text="Creation time of the most recent message",
                    ),
                ),
            ],
            options={
                "db_table": "chat_conversation",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["-last_message_at", "-created_at"],
                        name="chat_conv_activity_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="DirectConversationPair",
            fields=[
                (
                    "conversation",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        primary_key=True,
                        related_name="direct_pair",
                        serialize=False,
                        to="chat.conversation",
                        help_text="The direct conversation this pair represents",
                    ),
                ),
                (
                    "user_lower",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                        help_text="User with lower ID in this conversation pair",
                    ),
                ),
                (
                    "user_higher",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                        help_text="User with higher ID in this conversation pair",
                    ),
                ),
            ],
            options={
                "db_table": "chat_direct_conversation_pair",
                "constraints": [
                    models.UniqueConstraint(
                        fields=["user_lower", "user_higher"],
                        name="unique_direct_conversation_pair",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(user_lower_id__lt=models.F("user_higher_id")),
                        name="user_lower_less_than_higher",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Message",
            fields=[
                _id(),
                *_timestamps(),
                (
                    "body",
                    models.TextField(blank=True, default="", help_text="Message text"),
                ),
                (
                    "deleted",
                    models.BooleanField(
                        default=False,
                        help_text="Whether the sender deleted this message",
                    ),
                ),
                (
                    "conversation",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="messages",
                        to="chat.conversation",
                        help_text="The conversation this message belongs to",
                    ),
                ),
                (
                    "sender",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="chat_messages",
                        to=settings.AUTH_USER_MODEL,
                        help_text="User who sent the message",
                    ),
                ),
            ],
            options={
                "db_table": "chat_message",
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(
                        fields=["conversation", "created_at", "id"],
                        name="chat_msg_conv_created_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Membership",
            fields=[
                _id(),
                (
                    "joined_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        help_text="When the user became a member",
                    ),
                ),
                (
                    "conversation",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="memberships",
                        to="chat.conversation",
                        help_text="The conversation",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="chat_memberships",
                        to=settings.AUTH_USER_MODEL,
                        help_text="The member",
                    ),
                ),
                (
                    "last_read_message",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to="chat.message",
                        help_text="Most recent message this member has read",
                    ),
                ),
            ],
            options={
                "db_table": "chat_membership",
                "ordering": ["joined_at", "id"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=["conversation", "user"],
                        name="unique_conversation_membership",
                    ),
                ],
                "indexes": [
                    models.Index(
                        fields=["user", "conversation"],
                        name="chat_membership_user_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Reaction",
            fields=[
                _id(),
                *_timestamps(),
                (
                    "emoji",
                    models.CharField(max_length=32, help_text="Emoji character(s)"),
                ),
                (
                    "message",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="reactions",
                        to="chat.message",
                        help_text="The message reacted to",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="chat_reactions",
                        to=settings.AUTH_USER_MODEL,
                        help_text="User who reacted",
                    ),
                ),
            ],
            options={
                "db_table": "chat_reaction",
                "ordering": ["created_at", "id"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=["message", "user"],
                        name="unique_reaction_per_user",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="TypingMarker",
            fields=[
                _id(),
                (
                    "expires_at",
                    models.DateTimeField(
                        db_index=True,
                        help_text="When this marker stops counting as typing",
                    ),
                ),
                (
                    "conversation",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="typing_markers",
                        to="chat.conversation",
                        help_text="The conversation being typed in",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="chat_typing_markers",
                        to=settings.AUTH_USER_MODEL,
                        help_text="User who is typing",
                    ),
                ),
            ],
            options={
                "db_table": "chat_typing_marker",
                "constraints": [
                    models.UniqueConstraint(
                        fields=["conversation", "user"],
                        name="unique_typing_marker",
                    ),
                ],
            },
        ),
    ]
