"""
WebSocket consumers for the chat application.

Sockets are notification pipes: every server event carries ids only and the
client re-queries the matching REST read operation. The only client-to-server
frames are typing indicators.

Consumers:
    InboxConsumer: Personal feed (conversation list changes, presence)
    ConversationConsumer: One open conversation (messages, reactions, typing)

Authentication:
    IdentityTokenAuthMiddleware attaches the user to self.scope["user"].

Channel Groups:
    user_<id>, directory: joined by InboxConsumer
    conversation_<id>: joined by ConversationConsumer

Close codes:
    4001: Not authenticated
    4003: Not a member of the conversation

Message Types (from client, conversation socket only):
    - typing: Refresh the caller's typing marker
    - stop_typing: Clear the caller's typing marker

Message Types (to client):
    - conversation.changed, message.created, message.deleted,
      reactions.changed, typing.changed, presence.changed
    - error: Rejected client frame
"""

from __future__ import annotations

import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer

from chat.models import Membership
from chat.realtime import conversation_group, user_group
from chat.services import TypingService
from core.realtime import DIRECTORY_GROUP

logger = logging.getLogger(__name__)

CLOSE_UNAUTHENTICATED = 4001
CLOSE_NOT_A_MEMBER = 4003


class RealtimeConsumer(AsyncJsonWebsocketConsumer):
    """
    Base consumer that relays core.realtime events to the socket.

    Subclasses call accept_into_groups() from connect() once the user is vetted.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.groups_joined: list[str] = []

    @property
    def user(self):
        return self.scope.get("user")

    def is_authenticated(self) -> bool:
        user = self.user
        return bool(user and user.is_authenticated)

    async def accept_into_groups(self, groups: list[str]) -> None:
        for group in groups:
            await self.channel_layer.group_add(group, self.channel_name)
        self.groups_joined = groups
        # Echo the auth subprotocol when the client offered one.
        subprotocol = "jwt" if "jwt" in self.scope.get("subprotocols", []) else None
        await self.accept(subprotocol=subprotocol)

    async def disconnect(self, close_code):
        """Leave every group joined in connect()."""
        for group in self.groups_joined:
            await self.channel_layer.group_discard(group, self.channel_name)

        if self.groups_joined:
            logger.info(
                f"User {self.user.id} disconnected from {', '.join(self.groups_joined)}"
            )

    async def realtime_event(self, event):
        """
        Handle realtime.event messages from the channel layer.

        Forwards {"type": <event>, **payload} to the client.
        """
        await self.send_json({"type": event["event"], **event["payload"]})


class InboxConsumer(RealtimeConsumer):
    """
    Personal feed for the authenticated user.

    Receives conversation.changed for every conversation the user belongs to
    and presence.changed for everyone.
    """

    async def connect(self):
        if not self.is_authenticated():
            logger.warning("Rejected unauthenticated inbox connection")
            await self.close(code=CLOSE_UNAUTHENTICATED)
            return

        await self.accept_into_groups([user_group(self.user.id), DIRECTORY_GROUP])
        logger.info(f"User {self.user.id} connected to inbox")

    async def receive_json(self, content, **kwargs):
        await self.send_json(
            {"type": "error", "message": "Inbox socket does not accept messages"}
        )


class ConversationConsumer(RealtimeConsumer):
    """
    Feed for one conversation; members only.

    Attributes:
        conversation_id: Id from the URL route
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.conversation_id: int | None = None

    async def connect(self):
        """
        Validate the user and membership, then join conversation_<id>.
        """
        self.conversation_id = self.scope["url_route"]["kwargs"]["conversation_id"]

        if not self.is_authenticated():
            logger.warning(
                f"Rejected unauthenticated connection to conversation {self.conversation_id}"
            )
            await self.close(code=CLOSE_UNAUTHENTICATED)
            return

        if not await self._is_member():
            logger.warning(
                f"User {self.user.id} is not a member of "
                f"conversation {self.conversation_id}"
            )
            await self.close(code=CLOSE_NOT_A_MEMBER)
            return

        await self.accept_into_groups([conversation_group(self.conversation_id)])
        logger.info(f"User {self.user.id} connected to conversation {self.conversation_id}")

    async def receive_json(self, content, **kwargs):
        """
        Handle client frames.

        Expected message format:
            {"type": "typing"}
            {"type": "stop_typing"}
        """
        message_type = content.get("type") if isinstance(content, dict) else None

        if message_type == "typing":
            result = await self._set_typing()
        elif message_type == "stop_typing":
            result = await self._stop_typing()
        else:
            await self.send_json(
                {"type": "error", "message": f"Unknown message type: {message_type}"}
            )
            return

        if not result.success:
            await self.send_json(
                {
                    "type": "error",
                    "message": result.error,
                    "error_code": result.error_code,
                }
            )

    @database_sync_to_async
    def _is_member(self) -> bool:
        return Membership.objects.filter(
            conversation_id=self.conversation_id,
            user_id=self.user.id,
        ).exists()

    @database_sync_to_async
    def _set_typing(self):
        return TypingService.set_typing(self.conversation_id, self.user.id)

    @database_sync_to_async
    def _stop_typing(self):
        return TypingService.stop_typing(self.conversation_id, self.user.id)
