"""
WebSocket URL routing for the chat application.

URL Patterns:
    ws/chat/                    - Personal inbox (conversation list, presence)
    ws/chat/<conversation_id>/  - One conversation (messages, reactions, typing)

Authentication:
    The identity JWT is passed as ?token=<jwt> or via the "jwt" subprotocol;
    IdentityTokenAuthMiddleware attaches the user to the consumer's scope.
"""

from django.urls import path

from chat import consumers

websocket_urlpatterns = [
    path("ws/chat/", consumers.InboxConsumer.as_asgi()),
    path(
        "ws/chat/<int:conversation_id>/",
        consumers.ConversationConsumer.as_asgi(),
    ),
]
