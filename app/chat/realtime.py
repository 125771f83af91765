"""
Channel-layer group names and event helpers for chat.

Groups:
    user_<id>:          personal inbox (conversation list changes)
    conversation_<id>:  open conversation (messages, reactions, typing)
    directory:          presence and directory changes (core.realtime)

Events (socket payload "type"):
    conversation.changed  {conversation_id}
    message.created       {conversation_id, message_id}
    message.deleted       {conversation_id, message_id}
    reactions.changed     {conversation_id, message_id}
    typing.changed        {conversation_id}
    presence.changed      {user_id, is_online}

Events carry ids only; clients re-query the affected read operation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.realtime import DIRECTORY_GROUP, broadcast, broadcast_many

if TYPE_CHECKING:
    from collections.abc import Iterable


def user_group(user_id: int) -> str:
    """Personal group for a user."""
    return f"user_{user_id}"


def conversation_group(conversation_id: int) -> str:
    """Group for everyone viewing a conversation."""
    return f"conversation_{conversation_id}"


def conversation_changed(conversation_id: int, user_ids: Iterable[int]) -> None:
    """Nudge each member's inbox to re-read its conversation list."""
    broadcast_many(
        [user_group(user_id) for user_id in user_ids],
        "conversation.changed",
        {"conversation_id": conversation_id},
    )


def message_event(event: str, conversation_id: int, message_id: int) -> None:
    """message.created / message.deleted / reactions.changed."""
    broadcast(
        conversation_group(conversation_id),
        event,
        {"conversation_id": conversation_id, "message_id": message_id},
    )


def typing_changed(conversation_id: int) -> None:
    broadcast(
        conversation_group(conversation_id),
        "typing.changed",
        {"conversation_id": conversation_id},
    )


def presence_changed(user_id: int, is_online: bool) -> None:
    broadcast(
        DIRECTORY_GROUP,
        "presence.changed",
        {"user_id": user_id, "is_online": is_online},
    )
