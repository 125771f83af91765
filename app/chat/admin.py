"""
Django admin configuration for chat models.

Provides admin interfaces for:
- Conversation management with member inline
- Message moderation
- Reaction and typing inspection
"""

from django.contrib import admin

from chat.models import (
    Conversation,
    DirectConversationPair,
    Membership,
    Message,
    Reaction,
    TypingMarker,
)


class MembershipInline(admin.TabularInline):
    """Inline display of members in conversation admin."""

    model = Membership
    extra = 0
    readonly_fields = ["joined_at", "last_read_message"]
    raw_id_fields = ["user"]


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    list_display = ["id", "is_group", "name", "created_at", "last_message_at"]
    list_filter = ["is_group", "created_at"]
    search_fields = ["name", "id"]
    readonly_fields = ["created_at", "updated_at", "last_message_at"]
    inlines = [MembershipInline]
    ordering = ["-created_at"]


@admin.register(DirectConversationPair)
class DirectConversationPairAdmin(admin.ModelAdmin):
    list_display = ["conversation", "user_lower", "user_higher"]
    raw_id_fields = ["conversation", "user_lower", "user_higher"]


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """
    Message moderation.

    Bodies of deleted messages stay visible here; only API output hides them.
    """

    list_display = ["id", "conversation", "sender", "short_body", "deleted", "created_at"]
    list_filter = ["deleted", "created_at"]
    search_fields = ["body", "sender__display_name", "sender__email"]
    raw_id_fields = ["conversation", "sender"]
    readonly_fields = ["created_at", "updated_at"]
    ordering = ["-created_at"]

    @admin.display(description="Body")
    def short_body(self, obj):
        return obj.body[:50]


@admin.register(Reaction)
class ReactionAdmin(admin.ModelAdmin):
    list_display = ["id", "message", "user", "emoji", "created_at"]
    search_fields = ["emoji"]
    raw_id_fields = ["message", "user"]


@admin.register(TypingMarker)
class TypingMarkerAdmin(admin.ModelAdmin):
    list_display = ["conversation", "user", "expires_at"]
    raw_id_fields = ["conversation", "user"]
