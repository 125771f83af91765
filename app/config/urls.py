"""
URL configuration for the chat backend.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/users/                 - User directory
        me/                        - Current user
        sync/                      - Client-side profile upsert
        by-external-id/{id}/       - Lookup by identity-provider id
        webhooks/identity/         - Identity provider webhook (POST, signed)
    /api/v1/chat/                  - Chat endpoints
        conversations/             - Conversation list
        conversations/direct/      - Get or create a direct conversation
        conversations/group/       - Create a group
        conversations/{id}/        - Conversation detail
        conversations/{id}/read/   - Move read cursor
        conversations/{id}/messages/ - Message history / send
        conversations/{id}/typing/ - Typing indicator
        messages/{id}/             - Delete message
        messages/{id}/reactions/   - Reactions
        presence/...               - Heartbeat, offline, lookups

WebSocket routes are declared in chat.routing (see config.asgi).
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
api_v1_patterns = [
    path("users/", include("users.urls")),
    path("chat/", include("chat.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

admin.site.site_header = "Chat Admin"
admin.site.site_title = "Chat Admin Portal"
admin.site.index_title = "Users and conversations"
