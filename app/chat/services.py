"""
Chat system service layer.

This module provides the business logic for the chat system, encapsulating
all operations on conversations, memberships, messages, reactions, typing
indicators and presence.

Services:
    ConversationService: DM resolution, group creation, listing, read cursors
    MessageService: Message history, sending and soft deletion
    ReactionService: One-emoji-per-user reactions and their aggregation
    TypingService: Short-lived typing markers
    PresenceService: Heartbeat-driven online/offline state

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures return ServiceResult.failure() with an error_code
      (NOT_A_MEMBER, NOT_FOUND, UNAUTHORIZED, VALIDATION_ERROR)
    - Authorization checks and writes share one transaction
    - Every committed change is broadcast (chat.realtime) so subscribers can
      re-read the affected query

Usage:
    from chat.services import ConversationService, MessageService

    result = ConversationService.get_or_create_dm(alice.id, bob.id)
    if result.success:
        conversation = result.data

    result = MessageService.send_message(conversation.id, alice.id, "Hello!")
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING

from django.db import IntegrityError
from django.db.models import Q
from django.utils import timezone

from chat import realtime
from chat.constants import (
    CONVERSATION_CONFIG,
    MESSAGE_CONFIG,
    REACTION_CONFIG,
    TYPING_CONFIG,
)
from chat.models import (
    Conversation,
    DirectConversationPair,
    Membership,
    Message,
    Reaction,
    TypingMarker,
)
from core.services import BaseService, ServiceResult
from users.models import User

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

NOT_A_MEMBER = "NOT_A_MEMBER"
NOT_FOUND = "NOT_FOUND"
UNAUTHORIZED = "UNAUTHORIZED"
VALIDATION_ERROR = "VALIDATION_ERROR"


def _not_a_member() -> ServiceResult:
    return ServiceResult.failure(
        "You are not a member of this conversation",
        error_code=NOT_A_MEMBER,
    )


def _is_member(conversation_id: int, user_id: int) -> bool:
    return Membership.objects.filter(
        conversation_id=conversation_id, user_id=user_id
    ).exists()


def _member_ids(conversation_id: int) -> list[int]:
    return list(
        Membership.objects.filter(conversation_id=conversation_id).values_list(
            "user_id", flat=True
        )
    )


# =============================================================================
# Result types
# =============================================================================


@dataclass
class ConversationSummary:
    """
    One row of a user's conversation list.

    Attributes:
        conversation: The conversation
        members: Every member (including the viewer)
        other_user: The other participant of a DM (None for groups, or when
            the other account is gone)
        last_message: Newest message, or None
        unread_count: Messages from others after the viewer's read cursor
        membership: The viewer's own membership (read cursor, joined_at)
    """

    conversation: Conversation
    members: list[User]
    other_user: User | None
    last_message: Message | None
    unread_count: int
    membership: Membership

    @property
    def activity_at(self) -> datetime:
        """Sort key: newest message time, else conversation creation."""
        if self.last_message is not None:
            return self.last_message.created_at
        return self.conversation.created_at


@dataclass
class ConversationDetail:
    """A single conversation as seen by one of its members."""

    conversation: Conversation
    members: list[User]
    other_user: User | None
    membership: Membership


@dataclass
class ReactionGroup:
    """Reactions to one message sharing the same emoji."""

    emoji: str
    count: int = 0
    user_ids: list[int] = field(default_factory=list)


@dataclass
class PresenceInfo:
    """Presence snapshot for one user."""

    user_id: int
    is_online: bool
    last_seen_at: datetime


# =============================================================================
# Conversations
# =============================================================================


class ConversationService(BaseService):
    """
    Service for the conversation directory.

    Methods:
        get_or_create_dm: Resolve the unique DM between two users
        create_group: Create a group conversation
        list_for_user: Conversation list with unread counts
        get_conversation: One conversation for a member
        mark_as_read: Move the caller's read cursor
        unread_count: Unread messages for a membership
    """

    @classmethod
    def get_or_create_dm(
        cls,
        current_user_id: int,
        other_user_id: int,
    ) -> ServiceResult[Conversation]:
        """
        Return the direct conversation between two users, creating it once.

        Implementation:
            1. Reject a DM with oneself
            2. Canonicalize the pair (lower user id first)
            3. Return the conversation behind an existing DirectConversationPair
            4. Otherwise create conversation, pair and both memberships in one
               transaction; a concurrent creator for the same pair loses on
               the unique pair constraint and re-reads the winner's row

        Returns:
            ServiceResult with the Conversation (existing or new)

        Error codes:
            VALIDATION_ERROR: Both ids are the same user
            NOT_FOUND: The other user does not exist
        """
        if current_user_id == other_user_id:
            return ServiceResult.failure(
                "Cannot start a direct conversation with yourself",
                error_code=VALIDATION_ERROR,
            )

        if not User.objects.filter(id=other_user_id).exists():
            return ServiceResult.failure("User not found", error_code=NOT_FOUND)

        lower_id, higher_id = DirectConversationPair.canonical(
            current_user_id, other_user_id
        )

        existing = cls._find_dm(lower_id, higher_id)
        if existing is not None:
            cls.get_logger().debug(
                f"Found existing direct conversation {existing.id} "
                f"between users {lower_id} and {higher_id}"
            )
            return ServiceResult.success(existing)

        try:
            with cls.atomic():
                conversation = Conversation.objects.create(is_group=False)
                DirectConversationPair.objects.create(
                    conversation=conversation,
                    user_lower_id=lower_id,
                    user_higher_id=higher_id,
                )
                Membership.objects.bulk_create(
                    [
                        Membership(conversation=conversation, user_id=lower_id),
                        Membership(conversation=conversation, user_id=higher_id),
                    ]
                )
                realtime.conversation_changed(conversation.id, [lower_id, higher_id])
        except IntegrityError:
            existing = cls._find_dm(lower_id, higher_id)
            if existing is None:
                raise
            cls.get_logger().info(
                f"Concurrent direct conversation creation for users {lower_id} "
                f"and {higher_id}; using {existing.id}"
            )
            return ServiceResult.success(existing)

        cls.get_logger().info(
            f"Created direct conversation {conversation.id} "
            f"between users {lower_id} and {higher_id}"
        )
        return ServiceResult.success(conversation)

    @staticmethod
    def _find_dm(lower_id: int, higher_id: int) -> Conversation | None:
        pair = (
            DirectConversationPair.objects.select_related("conversation")
            .filter(user_lower_id=lower_id, user_higher_id=higher_id)
            .first()
        )
        return pair.conversation if pair else None

    @classmethod
    def create_group(
        cls,
        name: str | None,
        member_ids: Iterable[int],
        creator_id: int,
    ) -> ServiceResult[Conversation]:
        """
        Create a group conversation.

        The creator is always a member; duplicate ids collapse to one
        membership. A blank name becomes "Unnamed Group".

        Args:
            name: Group name (trimmed)
            member_ids: Users to add besides the creator
            creator_id: User creating the group

        Returns:
            ServiceResult with the new Conversation

        Error codes:
            VALIDATION_ERROR: Fewer than 2 distinct members, or name too long
            NOT_FOUND: One of the member ids does not exist
        """
        all_member_ids = list(dict.fromkeys([creator_id, *member_ids]))

        if len(all_member_ids) < CONVERSATION_CONFIG.MIN_GROUP_MEMBERS:
            return ServiceResult.failure(
                "A group needs at least 2 members",
                error_code=VALIDATION_ERROR,
                errors={"member_ids": ["Add at least one other member."]},
            )

        name = (name or "").strip() or CONVERSATION_CONFIG.DEFAULT_GROUP_NAME
        if len(name) > CONVERSATION_CONFIG.MAX_GROUP_NAME_LENGTH:
            return ServiceResult.failure(
                "Group name is too long",
                error_code=VALIDATION_ERROR,
                errors={
                    "name": [
                        f"Ensure this field has no more than "
                        f"{CONVERSATION_CONFIG.MAX_GROUP_NAME_LENGTH} characters."
                    ]
                },
            )

        with cls.atomic():
            existing_ids = set(
                User.objects.filter(id__in=all_member_ids).values_list("id", flat=True)
            )
            missing = [user_id for user_id in all_member_ids if user_id not in existing_ids]
            if missing:
                return ServiceResult.failure(
                    "User not found",
                    error_code=NOT_FOUND,
                    errors={"member_ids": [f"Unknown user id {user_id}." for user_id in missing]},
                )

            conversation = Conversation.objects.create(is_group=True, name=name)
            Membership.objects.bulk_create(
                [
                    Membership(conversation=conversation, user_id=user_id)
                    for user_id in all_member_ids
                ]
            )
            realtime.conversation_changed(conversation.id, all_member_ids)

        cls.get_logger().info(
            f"Created group conversation {conversation.id} "
            f"named '{name}' with {len(all_member_ids)} members"
        )
        return ServiceResult.success(conversation)

    @classmethod
    def list_for_user(cls, user_id: int) -> list[ConversationSummary]:
        """
        Build the conversation list for a user.

        Sorted by newest activity first: the newest message's creation time,
        or the conversation's creation time when it has no messages.
        """
        memberships = list(
            Membership.objects.filter(user_id=user_id).select_related(
                "conversation", "last_read_message"
            )
        )
        if not memberships:
            return []

        members_by_conversation = cls._members_by_conversation(
            [m.conversation_id for m in memberships]
        )

        summaries = []
        for membership in memberships:
            conversation = membership.conversation
            members = members_by_conversation[conversation.id]
            last_message = (
                Message.objects.filter(conversation_id=conversation.id)
                .select_related("sender")
                .order_by("-created_at", "-id")
                .first()
            )
            summaries.append(
                ConversationSummary(
                    conversation=conversation,
                    members=members,
                    other_user=cls._other_user(conversation, members, user_id),
                    last_message=last_message,
                    unread_count=(
                        cls.unread_count(membership) if last_message is not None else 0
                    ),
                    membership=membership,
                )
            )

        summaries.sort(key=lambda summary: summary.activity_at, reverse=True)
        return summaries

    @classmethod
    def get_conversation(
        cls,
        conversation_id: int,
        current_user_id: int,
    ) -> ConversationDetail | None:
        """
        Load a conversation for one of its members.

        Returns:
            ConversationDetail, or None when the conversation does not exist
            or the caller is not a member
        """
        membership = (
            Membership.objects.select_related("conversation", "last_read_message")
            .filter(conversation_id=conversation_id, user_id=current_user_id)
            .first()
        )
        if membership is None:
            return None

        conversation = membership.conversation
        members = cls._members_by_conversation([conversation.id])[conversation.id]
        return ConversationDetail(
            conversation=conversation,
            members=members,
            other_user=cls._other_user(conversation, members, current_user_id),
            membership=membership,
        )

    @classmethod
    def mark_as_read(
        cls,
        conversation_id: int,
        user_id: int,
        message_id: int,
    ) -> ServiceResult[None]:
        """
        Move the caller's read cursor to a message.

        Silently does nothing when the caller is not a member.

        Error codes:
            NOT_FOUND: The message does not belong to this conversation
        """
        with cls.atomic():
            membership = (
                Membership.objects.select_for_update()
                .filter(conversation_id=conversation_id, user_id=user_id)
                .first()
            )
            if membership is None:
                cls.get_logger().debug(
                    f"Ignoring mark_as_read by non-member {user_id} "
                    f"in conversation {conversation_id}"
                )
                return ServiceResult.success(None)

            message = Message.objects.filter(
                id=message_id, conversation_id=conversation_id
            ).first()
            if message is None:
                return ServiceResult.failure(
                    "Message not found in this conversation",
                    error_code=NOT_FOUND,
                )

            membership.last_read_message = message
            membership.save(update_fields=["last_read_message"])
            realtime.conversation_changed(conversation_id, [user_id])

        cls.get_logger().debug(
            f"User {user_id} read conversation {conversation_id} up to message {message_id}"
        )
        return ServiceResult.success(None)

    @staticmethod
    def unread_count(membership: Membership) -> int:
        """
        Count messages from other senders after the membership's read cursor.

        "After" is strict in (created_at, id) order, so a message created in
        the same instant as the cursor but inserted later still counts.
        Without a cursor every message from other senders counts. Messages
        whose sender account is gone count as from others.
        """
        messages = Message.objects.filter(
            conversation_id=membership.conversation_id
        ).exclude(sender_id=membership.user_id)

        cursor = membership.last_read_message
        if cursor is not None:
            messages = messages.filter(
                Q(created_at__gt=cursor.created_at)
                | Q(created_at=cursor.created_at, id__gt=cursor.id)
            )

        return messages.count()

    @staticmethod
    def _members_by_conversation(conversation_ids: list[int]) -> dict[int, list[User]]:
        members: dict[int, list[User]] = defaultdict(list)
        rows = (
            Membership.objects.filter(conversation_id__in=conversation_ids)
            .select_related("user")
            .order_by("joined_at", "id")
        )
        for row in rows:
            members[row.conversation_id].append(row.user)
        return members

    @staticmethod
    def _other_user(
        conversation: Conversation,
        members: list[User],
        viewer_id: int,
    ) -> User | None:
        if conversation.is_group:
            return None
        return next((member for member in members if member.id != viewer_id), None)


# =============================================================================
# Messages
# =============================================================================


class MessageService(BaseService):
    """
    Service for message operations.

    Methods:
        list_messages: Full history for a member, oldest first
        send_message: Append a message and bump conversation activity
        delete_message: Soft delete by the sender
    """

    @classmethod
    def list_messages(
        cls,
        conversation_id: int,
        current_user_id: int,
    ) -> ServiceResult[list[Message]]:
        """
        List every message in a conversation, oldest first.

        Senders are joined; messages whose sender account is gone have
        sender=None.

        Error codes:
            NOT_A_MEMBER: Caller is not a member (or conversation is absent)
        """
        if not _is_member(conversation_id, current_user_id):
            return _not_a_member()

        messages = list(
            Message.objects.filter(conversation_id=conversation_id)
            .select_related("sender")
            .order_by("created_at", "id")
        )
        return ServiceResult.success(messages)

    @classmethod
    def send_message(
        cls,
        conversation_id: int,
        sender_id: int,
        body: str,
    ) -> ServiceResult[Message]:
        """
        Send a message.

        The body is trimmed; an empty body is accepted. The conversation's
        last_message_at moves to the message's creation time in the same
        transaction. Sends are not deduplicated.

        Error codes:
            NOT_A_MEMBER: Sender is not a member
            VALIDATION_ERROR: Body exceeds the maximum length
        """
        body = (body or "").strip()
        if len(body) > MESSAGE_CONFIG.MAX_BODY_LENGTH:
            return ServiceResult.failure(
                "Message is too long",
                error_code=VALIDATION_ERROR,
                errors={
                    "body": [
                        f"Ensure this field has no more than "
                        f"{MESSAGE_CONFIG.MAX_BODY_LENGTH} characters."
                    ]
                },
            )

        with cls.atomic():
            if not _is_member(conversation_id, sender_id):
                cls.get_logger().warning(
                    f"User {sender_id} tried to send to conversation "
                    f"{conversation_id} without membership"
                )
                return _not_a_member()

            message = Message.objects.create(
                conversation_id=conversation_id,
                sender_id=sender_id,
                body=body,
                deleted=False,
            )
            Conversation.objects.filter(id=conversation_id).update(
                last_message_at=message.created_at,
                updated_at=timezone.now(),
            )

            realtime.message_event("message.created", conversation_id, message.id)
            realtime.conversation_changed(conversation_id, _member_ids(conversation_id))

        cls.get_logger().info(
            f"User {sender_id} sent message {message.id} to conversation {conversation_id}"
        )
        return ServiceResult.success(message)

    @classmethod
    def delete_message(
        cls,
        message_id: int,
        user_id: int,
    ) -> ServiceResult[Message]:
        """
        Soft delete a message.

        Only the sender may delete. The body is kept in storage; serializers
        render a placeholder instead. Deleting an already deleted message
        succeeds again.

        Error codes:
            NOT_FOUND: Message does not exist
            UNAUTHORIZED: Caller is not the sender
        """
        with cls.atomic():
            message = Message.objects.select_for_update().filter(id=message_id).first()
            if message is None:
                return ServiceResult.failure("Message not found", error_code=NOT_FOUND)

            if message.sender_id != user_id:
                cls.get_logger().warning(
                    f"User {user_id} tried to delete message {message_id} "
                    f"sent by {message.sender_id}"
                )
                return ServiceResult.failure(
                    "You can only delete your own messages",
                    error_code=UNAUTHORIZED,
                )

            if not message.deleted:
                message.deleted = True
                message.save(update_fields=["deleted", "updated_at"])

                realtime.message_event(
                    "message.deleted", message.conversation_id, message.id
                )
                realtime.conversation_changed(
                    message.conversation_id, _member_ids(message.conversation_id)
                )

        cls.get_logger().info(f"User {user_id} deleted message {message_id}")
        return ServiceResult.success(message)


# =============================================================================
# Reactions
# =============================================================================


class ReactionService(BaseService):
    """
    Service for message reactions.

    Each user holds at most one reaction per message; reacting again
    replaces the emoji.

    Methods:
        add_reaction: Set the caller's reaction
        remove_reaction: Clear the caller's reaction
        get_reactions: Reactions grouped by emoji
    """

    @classmethod
    def _validate_emoji(cls, emoji: str | None) -> str | None:
        """Return the trimmed emoji, or None when blank or too long."""
        emoji = (emoji or "").strip()
        if not emoji or len(emoji) > REACTION_CONFIG.MAX_EMOJI_LENGTH:
            return None
        return emoji

    @classmethod
    def _message_for_member(
        cls,
        message_id: int,
        user_id: int,
    ) -> tuple[Message | None, ServiceResult | None]:
        message = Message.objects.filter(id=message_id).first()
        if message is None:
            return None, ServiceResult.failure("Message not found", error_code=NOT_FOUND)
        if not _is_member(message.conversation_id, user_id):
            return None, _not_a_member()
        return message, None

    @classmethod
    def add_reaction(
        cls,
        message_id: int,
        user_id: int,
        emoji: str,
    ) -> ServiceResult[Reaction]:
        """
        Set the caller's reaction on a message.

        An existing reaction by the caller has its emoji replaced and keeps
        its original position in the grouping order.

        Error codes:
            VALIDATION_ERROR: Emoji blank or longer than MAX_EMOJI_LENGTH
            NOT_FOUND: Message does not exist
            NOT_A_MEMBER: Caller is not in the message's conversation
        """
        cleaned = cls._validate_emoji(emoji)
        if cleaned is None:
            return ServiceResult.failure(
                "Invalid emoji",
                error_code=VALIDATION_ERROR,
                errors={
                    "emoji": [
                        f"Provide an emoji of at most "
                        f"{REACTION_CONFIG.MAX_EMOJI_LENGTH} characters."
                    ]
                },
            )

        with cls.atomic():
            message, failure = cls._message_for_member(message_id, user_id)
            if failure is not None:
                return failure

            reaction = (
                Reaction.objects.select_for_update()
                .filter(message=message, user_id=user_id)
                .first()
            )
            if reaction is None:
                try:
                    with cls.atomic():
                        reaction = Reaction.objects.create(
                            message=message, user_id=user_id, emoji=cleaned
                        )
                except IntegrityError:
                    reaction = Reaction.objects.select_for_update().get(
                        message=message, user_id=user_id
                    )

            if reaction.emoji != cleaned:
                reaction.emoji = cleaned
                reaction.save(update_fields=["emoji", "updated_at"])

            realtime.message_event(
                "reactions.changed", message.conversation_id, message.id
            )

        cls.get_logger().debug(
            f"User {user_id} reacted {cleaned} to message {message_id}"
        )
        return ServiceResult.success(reaction)

    @classmethod
    def remove_reaction(
        cls,
        message_id: int,
        user_id: int,
    ) -> ServiceResult[None]:
        """
        Remove the caller's reaction; no-op when there is none.

        Error codes:
            NOT_FOUND: Message does not exist
            NOT_A_MEMBER: Caller is not in the message's conversation
        """
        with cls.atomic():
            message, failure = cls._message_for_member(message_id, user_id)
            if failure is not None:
                return failure

            deleted, _ = Reaction.objects.filter(message=message, user_id=user_id).delete()
            if deleted:
                realtime.message_event(
                    "reactions.changed", message.conversation_id, message.id
                )

        return ServiceResult.success(None)

    @classmethod
    def get_reactions(
        cls,
        message_id: int,
        current_user_id: int,
    ) -> ServiceResult[list[ReactionGroup]]:
        """
        Reactions on a message grouped by emoji.

        Groups appear in the order their emoji was first used; user_ids
        within a group follow reaction creation order.

        Error codes:
            NOT_FOUND: Message does not exist
            NOT_A_MEMBER: Caller is not in the message's conversation
        """
        message, failure = cls._message_for_member(message_id, current_user_id)
        if failure is not None:
            return failure

        groups: dict[str, ReactionGroup] = {}
        for emoji, user_id in (
            Reaction.objects.filter(message=message)
            .order_by("created_at", "id")
            .values_list("emoji", "user_id")
        ):
            group = groups.setdefault(emoji, ReactionGroup(emoji=emoji))
            group.count += 1
            group.user_ids.append(user_id)

        return ServiceResult.success(list(groups.values()))


# =============================================================================
# Typing
# =============================================================================


class TypingService(BaseService):
    """
    Service for typing indicators.

    A marker counts as typing for TYPING_CONFIG.TTL_MS after the last
    set_typing call. Reads filter on expires_at, so stale markers never show
    even before the sweep removes them.

    Methods:
        set_typing: Refresh the caller's marker and sweep expired ones
        get_typing_users: Who is typing, excluding the caller
        stop_typing: Clear the caller's marker
        sweep_expired: Delete every expired marker
    """

    @classmethod
    def set_typing(
        cls,
        conversation_id: int,
        user_id: int,
    ) -> ServiceResult[TypingMarker]:
        """
        Mark the caller as typing until now + TTL.

        Error codes:
            NOT_A_MEMBER: Caller is not a member
        """
        now = timezone.now()
        expires_at = now + timedelta(milliseconds=TYPING_CONFIG.TTL_MS)

        with cls.atomic():
            if not _is_member(conversation_id, user_id):
                return _not_a_member()

            marker, _ = TypingMarker.objects.update_or_create(
                conversation_id=conversation_id,
                user_id=user_id,
                defaults={"expires_at": expires_at},
            )
            cls.sweep_expired(now=now)
            realtime.typing_changed(conversation_id)

        return ServiceResult.success(marker)

    @classmethod
    def get_typing_users(
        cls,
        conversation_id: int,
        excluding_user_id: int,
    ) -> ServiceResult[list[User]]:
        """
        Users with a live marker in the conversation, excluding the caller.

        Error codes:
            NOT_A_MEMBER: Caller is not a member
        """
        if not _is_member(conversation_id, excluding_user_id):
            return _not_a_member()

        users = list(
            User.objects.filter(
                chat_typing_markers__conversation_id=conversation_id,
                chat_typing_markers__expires_at__gt=timezone.now(),
            ).exclude(id=excluding_user_id)
        )
        return ServiceResult.success(users)

    @classmethod
    def stop_typing(
        cls,
        conversation_id: int,
        user_id: int,
    ) -> ServiceResult[None]:
        """
        Clear the caller's marker; no-op when there is none.

        Error codes:
            NOT_A_MEMBER: Caller is not a member
        """
        with cls.atomic():
            if not _is_member(conversation_id, user_id):
                return _not_a_member()

            deleted, _ = TypingMarker.objects.filter(
                conversation_id=conversation_id, user_id=user_id
            ).delete()
            if deleted:
                realtime.typing_changed(conversation_id)

        return ServiceResult.success(None)

    @classmethod
    def sweep_expired(cls, now: datetime | None = None) -> int:
        """
        Delete every marker, in any conversation, that expired before now.

        Returns:
            Number of markers deleted
        """
        now = now or timezone.now()
        deleted, _ = TypingMarker.objects.filter(expires_at__lt=now).delete()
        if deleted:
            cls.get_logger().debug(f"Swept {deleted} expired typing markers")
        return deleted


# =============================================================================
# Presence
# =============================================================================


class PresenceService(BaseService):
    """
    Service for online/offline presence.

    Presence is client-driven: clients heartbeat while active and call
    set_offline on exit. The optional mark_stale_users_offline sweep only
    runs when enabled in settings.

    Methods:
        heartbeat: Mark online, refresh last_seen_at
        set_offline: Mark offline, refresh last_seen_at
        get_presence: One user's presence
        get_batch_presence: Presence for several users
        mark_stale_users_offline: Offline users whose heartbeat stopped
    """

    @classmethod
    def heartbeat(cls, user_id: int) -> ServiceResult[None]:
        """Mark the user online. Unknown users are ignored."""
        return cls._set_online_state(user_id, is_online=True)

    @classmethod
    def set_offline(cls, user_id: int) -> ServiceResult[None]:
        """Mark the user offline. Unknown users are ignored."""
        return cls._set_online_state(user_id, is_online=False)

    @classmethod
    def _set_online_state(cls, user_id: int, is_online: bool) -> ServiceResult[None]:
        with cls.atomic():
            was_online = (
                User.objects.select_for_update()
                .filter(id=user_id)
                .values_list("is_online", flat=True)
                .first()
            )
            if was_online is None:
                cls.get_logger().debug(f"Presence update for unknown user {user_id}")
                return ServiceResult.success(None)

            User.objects.filter(id=user_id).update(
                is_online=is_online,
                last_seen_at=timezone.now(),
            )
            if was_online != is_online:
                realtime.presence_changed(user_id, is_online)

        return ServiceResult.success(None)

    @classmethod
    def get_presence(cls, user_id: int) -> PresenceInfo | None:
        """Presence for one user, or None if the user does not exist."""
        row = (
            User.objects.filter(id=user_id)
            .values_list("id", "is_online", "last_seen_at")
            .first()
        )
        return PresenceInfo(*row) if row else None

    @classmethod
    def get_batch_presence(cls, user_ids: Iterable[int]) -> list[PresenceInfo]:
        """
        Presence for several users, in request order.

        Unknown ids are dropped.
        """
        user_ids = list(user_ids)
        rows = {
            row[0]: PresenceInfo(*row)
            for row in User.objects.filter(id__in=user_ids).values_list(
                "id", "is_online", "last_seen_at"
            )
        }
        return [rows[user_id] for user_id in user_ids if user_id in rows]

    @classmethod
    def mark_stale_users_offline(cls, threshold_seconds: int) -> int:
        """
        Flip online users with no heartbeat for threshold_seconds to offline.

        last_seen_at keeps the time of the last heartbeat.

        Returns:
            Number of users marked offline
        """
        cutoff = timezone.now() - timedelta(seconds=threshold_seconds)

        with cls.atomic():
            stale_ids = list(
                User.objects.select_for_update()
                .filter(is_online=True, last_seen_at__lt=cutoff)
                .values_list("id", flat=True)
            )
            if not stale_ids:
                return 0

            User.objects.filter(id__in=stale_ids).update(is_online=False)
            for user_id in stale_ids:
                realtime.presence_changed(user_id, False)

        cls.get_logger().info(f"Marked {len(stale_ids)} stale users offline")
        return len(stale_ids)
