"""
URL configuration for chat API.

URL Structure:
    Conversations:
        /conversations/                     GET
        /conversations/direct/              POST
        /conversations/group/               POST
        /conversations/{id}/                GET
        /conversations/{id}/read/           POST
        /conversations/{id}/messages/       GET, POST
        /conversations/{id}/typing/         GET, POST, DELETE

    Messages:
        /messages/{id}/                     DELETE
        /messages/{id}/reactions/           GET, POST, DELETE

    Presence:
        /presence/heartbeat/                POST
        /presence/offline/                  POST
        /presence/batch/                    POST
        /presence/{user_id}/                GET

All URLs are prefixed with /api/v1/chat/ in the main URL configuration.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from chat.views import (
    BatchPresenceView,
    ConversationViewSet,
    HeartbeatView,
    MessageDetailView,
    MessageListCreateView,
    MessageReactionsView,
    OfflineView,
    TypingView,
    UserPresenceView,
)

router = DefaultRouter()
router.register(r"conversations", ConversationViewSet, basename="conversation")

app_name = "chat"

urlpatterns = [
    path("", include(router.urls)),
    # Nested conversation routes
    path(
        "conversations/<int:conversation_pk>/messages/",
        MessageListCreateView.as_view(),
        name="conversation-message-list",
    ),
    path(
        "conversations/<int:conversation_pk>/typing/",
        TypingView.as_view(),
        name="conversation-typing",
    ),
    # Message routes
    path("messages/<int:pk>/", MessageDetailView.as_view(), name="message-detail"),
    path(
        "messages/<int:pk>/reactions/",
        MessageReactionsView.as_view(),
        name="message-reactions",
    ),
    # Presence
    path("presence/heartbeat/", HeartbeatView.as_view(), name="presence-heartbeat"),
    path("presence/offline/", OfflineView.as_view(), name="presence-offline"),
    path("presence/batch/", BatchPresenceView.as_view(), name="presence-batch"),
    path("presence/<int:user_id>/", UserPresenceView.as_view(), name="presence-user"),
]
