"""
Chat application configuration.

This app provides:
- Direct (1:1) and group conversations
- Messages with soft deletion and per-user read cursors
- Emoji reactions
- Presence and typing indicators
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"
