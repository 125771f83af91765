"""
ASGI config for the chat backend.

This file exposes the ASGI callable as a module-level variable named
`application`. It serves:
- HTTP requests via Django (REST API, admin, schema)
- WebSocket connections via Django Channels (realtime chat events)

WebSocket connections pass through:
    1. AllowedHostsOriginValidator - origin must match ALLOWED_HOSTS
    2. IdentityTokenAuthMiddleware - identity JWT from ?token= or "jwt" subprotocol
    3. URLRouter - ws/chat/ (inbox) and ws/chat/<conversation_id>/

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/howto/deployment/asgi/
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

# Initialize Django before importing anything that touches models
django_asgi_app = get_asgi_application()

from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402
from channels.security.websocket import AllowedHostsOriginValidator  # noqa: E402

from chat.middleware import IdentityTokenAuthMiddleware  # noqa: E402
from chat.routing import websocket_urlpatterns  # noqa: E402

application = ProtocolTypeRouter(
    {
        "http": django_asgi_app,
        "websocket": AllowedHostsOriginValidator(
            IdentityTokenAuthMiddleware(URLRouter(websocket_urlpatterns))
        ),
    }
)
