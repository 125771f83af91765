"""
Realtime fan-out over the Channels layer.

Services call broadcast() inside their transaction; the event is handed to
the channel layer only after the transaction commits, so a subscriber that
re-reads on receipt always sees the committed state.

Every event travels as a channel-layer message of type "realtime.event";
consumers expose a realtime_event() handler that forwards it to the socket as
{"type": <event>, **payload}.

Groups:
    DIRECTORY_GROUP: user directory and presence changes (everyone)
    Domain apps define their own group names (see chat.realtime).

Usage:
    from core.realtime import DIRECTORY_GROUP, broadcast

    broadcast(DIRECTORY_GROUP, "user.changed", {"user_id": user.id})
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)

DIRECTORY_GROUP = "directory"
EVENT_MESSAGE_TYPE = "realtime.event"


def send_event(group: str, event: str, payload: dict[str, Any]) -> None:
    """
    Send an event to a channel-layer group immediately.

    No-op when no channel layer is configured.
    """
    channel_layer = get_channel_layer()
    if channel_layer is None:
        logger.debug(f"No channel layer configured, dropping {event} for {group}")
        return

    async_to_sync(channel_layer.group_send)(
        group,
        {"type": EVENT_MESSAGE_TYPE, "event": event, "payload": payload},
    )
    logger.debug(f"Broadcast {event} to {group}")


def broadcast(group: str, event: str, payload: dict[str, Any]) -> None:
    """
    Send an event to a group once the current transaction commits.

    Outside a transaction the event is sent right away. Delivery failures
    are logged by Django's robust on_commit handling and never undo the
    committed write.
    """
    transaction.on_commit(lambda: send_event(group, event, payload), robust=True)


def broadcast_many(groups: list[str], event: str, payload: dict[str, Any]) -> None:
    """broadcast() the same event to several groups."""
    for group in groups:
        broadcast(group, event, payload)
