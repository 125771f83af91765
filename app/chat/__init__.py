"""
Chat app for real-time messaging.

This app handles:
- Conversations (direct and group) and memberships
- Message history, sending and deletion
- Reactions, typing indicators and presence
- WebSocket fan-out of every committed change

Related apps:
    - users: User model and directory
    - core: Service layer, realtime broadcast helpers

WebSocket Support:
    Uses Django Channels for real-time communication.
    See consumers.py for WebSocket handlers.
    See routing.py for WebSocket URL patterns.

Usage:
    from chat.services import ConversationService, MessageService

    conversation = ConversationService.get_or_create_dm(alice.id, bob.id).data
    message = MessageService.send_message(conversation.id, alice.id, "Hello!").data
"""
