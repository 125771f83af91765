"""
Constants and configuration for chat features.

This module centralizes tunables for:
- Conversations (group defaults)
- Messages (deleted-message rendering)
- Typing indicators (marker lifetime)
- Reactions (emoji validation)

Deployment-specific switches (e.g. PRESENCE_STALE_SWEEP_ENABLED) live in
settings; these values are part of the chat contract.

Import example:
    from chat.constants import TYPING_CONFIG, REACTION_CONFIG
"""

from typing import Final


# =============================================================================
# Conversation Configuration
# =============================================================================


class CONVERSATION_CONFIG:
    """Configuration for conversations."""

    DEFAULT_GROUP_NAME: Final[str] = "Unnamed Group"
    MAX_GROUP_NAME_LENGTH: Final[int] = 255

    # Creator included
    MIN_GROUP_MEMBERS: Final[int] = 2


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    MAX_BODY_LENGTH: Final[int] = 10000  # Characters

    # Shown in place of the body once the sender deletes a message
    DELETED_PLACEHOLDER: Final[str] = "This message was deleted"


# =============================================================================
# Typing Configuration
# =============================================================================


class TYPING_CONFIG:
    """Configuration for typing indicators."""

    # A marker counts as "typing" for this long after the last keystroke
    TTL_MS: Final[int] = 2000


# =============================================================================
# Reaction Configuration
# =============================================================================


class REACTION_CONFIG:
    """Configuration for message reactions."""

    # Characters, not bytes: compound emoji (skin tones, ZWJ sequences) fit
    MAX_EMOJI_LENGTH: Final[int] = 8
