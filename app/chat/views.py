"""
Views for chat API.

This module provides REST API endpoints for the chat system:
- ConversationViewSet: Conversation list/detail and create/read actions
- MessageListCreateView / MessageDetailView: History, send, delete
- MessageReactionsView: Reactions on one message
- TypingView: Typing indicator for one conversation
- Presence views: heartbeat, offline, single and batch lookup

URL Structure:
    /api/v1/chat/conversations/                     GET
    /api/v1/chat/conversations/direct/              POST
    /api/v1/chat/conversations/group/               POST
    /api/v1/chat/conversations/{id}/                GET
    /api/v1/chat/conversations/{id}/read/           POST
    /api/v1/chat/conversations/{id}/messages/       GET, POST
    /api/v1/chat/conversations/{id}/typing/         GET, POST, DELETE
    /api/v1/chat/messages/{id}/                     DELETE
    /api/v1/chat/messages/{id}/reactions/           GET, POST, DELETE
    /api/v1/chat/presence/heartbeat/                POST
    /api/v1/chat/presence/offline/                  POST
    /api/v1/chat/presence/batch/                    POST
    /api/v1/chat/presence/{user_id}/                GET

Design Decisions:
    - The acting user is always request.user; ids in bodies only name
      other resources
    - All rules live in chat.services; views validate input, call the
      service and map error_code to an HTTP status (core.views.error_response)
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema, extend_schema_view
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from chat.serializers import (
    BatchPresenceRequestSerializer,
    ConversationDetailSerializer,
    ConversationSerializer,
    ConversationSummarySerializer,
    DirectConversationCreateSerializer,
    GroupConversationCreateSerializer,
    MarkAsReadSerializer,
    MessageCreateSerializer,
    MessageSerializer,
    PresenceSerializer,
    ReactionCreateSerializer,
    ReactionGroupSerializer,
    ReactionSerializer,
)
from chat.services import (
    ConversationService,
    MessageService,
    PresenceService,
    ReactionService,
    TypingService,
)
from core.views import error_response
from users.serializers import UserSerializer

NOT_FOUND_BODY = {"error": "Conversation not found", "error_code": "NOT_FOUND"}


# =============================================================================
# Conversations
# =============================================================================


@extend_schema_view(
    list=extend_schema(
        operation_id="list_conversations",
        summary="List conversations",
        description=(
            "Every conversation the caller belongs to, newest activity first, "
            "with members, the other user (DMs), last message and unread count."
        ),
        responses={200: ConversationSummarySerializer(many=True)},
        tags=["Chat - Conversations"],
    ),
    retrieve=extend_schema(
        operation_id="get_conversation",
        summary="Get conversation",
        responses={
            200: ConversationDetailSerializer,
            404: OpenApiResponse(description="Absent, or caller is not a member"),
        },
        tags=["Chat - Conversations"],
    ),
)
class ConversationViewSet(viewsets.ViewSet):
    """
    ViewSet for conversation operations.

    list:
        The caller's conversations with unread counts.

    retrieve:
        One conversation with members. Non-members get 404 so conversation
        ids are not disclosed.

    direct:
        Open (or re-open) the DM with another user.

    group:
        Create a group conversation.

    read:
        Move the caller's read cursor.
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    def list(self, request):
        summaries = ConversationService.list_for_user(request.user.id)
        return Response(ConversationSummarySerializer(summaries, many=True).data)

    def retrieve(self, request, pk=None):
        detail = ConversationService.get_conversation(int(pk), request.user.id)
        if detail is None:
            return Response(NOT_FOUND_BODY, status=status.HTTP_404_NOT_FOUND)
        return Response(ConversationDetailSerializer(detail).data)

    @extend_schema(
        operation_id="get_or_create_direct_conversation",
        summary="Open direct conversation",
        description=(
            "Return the direct conversation between the caller and `user_id`, "
            "creating it on first use. Repeated calls return the same conversation."
        ),
        request=DirectConversationCreateSerializer,
        responses={
            200: ConversationSerializer,
            400: OpenApiResponse(description="Direct conversation with yourself"),
            404: OpenApiResponse(description="User not found"),
        },
        tags=["Chat - Conversations"],
    )
    @action(detail=False, methods=["post"])
    def direct(self, request):
        serializer = DirectConversationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ConversationService.get_or_create_dm(
            current_user_id=request.user.id,
            other_user_id=serializer.validated_data["user_id"],
        )
        if not result:
            return error_response(result)
        return Response(ConversationSerializer(result.data).data)

    @extend_schema(
        operation_id="create_group_conversation",
        summary="Create group",
        description=(
            "Create a group with the caller and `member_ids`. Needs at least two "
            'distinct members; a blank name becomes "Unnamed Group".'
        ),
        request=GroupConversationCreateSerializer,
        responses={
            201: ConversationSerializer,
            400: OpenApiResponse(description="Validation error"),
            404: OpenApiResponse(description="Unknown member id"),
        },
        tags=["Chat - Conversations"],
    )
    @action(detail=False, methods=["post"])
    def group(self, request):
        serializer = GroupConversationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = ConversationService.create_group(
            name=data["name"],
            member_ids=data["member_ids"],
            creator_id=request.user.id,
        )
        if not result:
            return error_response(result)
        return Response(
            ConversationSerializer(result.data).data, status=status.HTTP_201_CREATED
        )

    @extend_schema(
        operation_id="mark_conversation_read",
        summary="Mark conversation as read",
        description=(
            "Set the caller's read cursor to `message_id`. Does nothing for "
            "non-members."
        ),
        request=MarkAsReadSerializer,
        responses={
            204: OpenApiResponse(description="Cursor updated"),
            404: OpenApiResponse(description="Message not in this conversation"),
        },
        tags=["Chat - Conversations"],
    )
    @action(detail=True, methods=["post"])
    def read(self, request, pk=None):
        serializer = MarkAsReadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ConversationService.mark_as_read(
            conversation_id=int(pk),
            user_id=request.user.id,
            message_id=serializer.validated_data["message_id"],
        )
        if not result:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Messages
# =============================================================================


class MessageListCreateView(APIView):
    """
    GET: Message history, oldest first.
    POST: Send a message.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_messages",
        summary="List messages",
        responses={
            200: MessageSerializer(many=True),
            403: OpenApiResponse(description="Not a member"),
        },
        tags=["Chat - Messages"],
    )
    def get(self, request, conversation_pk):
        result = MessageService.list_messages(conversation_pk, request.user.id)
        if not result:
            return error_response(result)
        return Response(MessageSerializer(result.data, many=True).data)

    @extend_schema(
        operation_id="send_message",
        summary="Send message",
        request=MessageCreateSerializer,
        responses={
            201: MessageSerializer,
            403: OpenApiResponse(description="Not a member"),
        },
        tags=["Chat - Messages"],
    )
    def post(self, request, conversation_pk):
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MessageService.send_message(
            conversation_id=conversation_pk,
            sender_id=request.user.id,
            body=serializer.validated_data["body"],
        )
        if not result:
            return error_response(result)

        message = result.data
        message.sender = request.user
        return Response(MessageSerializer(message).data, status=status.HTTP_201_CREATED)


class MessageDetailView(APIView):
    """DELETE: Soft delete one of the caller's messages."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="delete_message",
        summary="Delete message",
        responses={
            204: OpenApiResponse(description="Deleted"),
            403: OpenApiResponse(description="Not the sender"),
            404: OpenApiResponse(description="Message not found"),
        },
        tags=["Chat - Messages"],
    )
    def delete(self, request, pk):
        result = MessageService.delete_message(message_id=pk, user_id=request.user.id)
        if not result:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)


class MessageReactionsView(APIView):
    """
    GET: Reactions grouped by emoji.
    POST: Set the caller's reaction (replaces any previous one).
    DELETE: Remove the caller's reaction.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_message_reactions",
        summary="Get reactions",
        responses={200: ReactionGroupSerializer(many=True)},
        tags=["Chat - Reactions"],
    )
    def get(self, request, pk):
        result = ReactionService.get_reactions(pk, request.user.id)
        if not result:
            return error_response(result)
        return Response(ReactionGroupSerializer(result.data, many=True).data)

    @extend_schema(
        operation_id="add_message_reaction",
        summary="Add reaction",
        request=ReactionCreateSerializer,
        responses={
            200: ReactionSerializer,
            400: OpenApiResponse(description="Invalid emoji"),
        },
        tags=["Chat - Reactions"],
    )
    def post(self, request, pk):
        serializer = ReactionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ReactionService.add_reaction(
            message_id=pk,
            user_id=request.user.id,
            emoji=serializer.validated_data["emoji"],
        )
        if not result:
            return error_response(result)
        return Response(ReactionSerializer(result.data).data)

    @extend_schema(
        operation_id="remove_message_reaction",
        summary="Remove reaction",
        responses={204: OpenApiResponse(description="Removed (or nothing to remove)")},
        tags=["Chat - Reactions"],
    )
    def delete(self, request, pk):
        result = ReactionService.remove_reaction(message_id=pk, user_id=request.user.id)
        if not result:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Typing
# =============================================================================


class TypingView(APIView):
    """
    GET: Users typing in the conversation (caller excluded).
    POST: Mark the caller as typing for the next two seconds.
    DELETE: Clear the caller's typing marker.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_typing_users",
        summary="Get typing users",
        responses={200: UserSerializer(many=True)},
        tags=["Chat - Typing"],
    )
    def get(self, request, conversation_pk):
        result = TypingService.get_typing_users(conversation_pk, request.user.id)
        if not result:
            return error_response(result)
        return Response(UserSerializer(result.data, many=True).data)

    @extend_schema(
        operation_id="set_typing",
        summary="Set typing",
        request=None,
        responses={204: OpenApiResponse(description="Marker refreshed")},
        tags=["Chat - Typing"],
    )
    def post(self, request, conversation_pk):
        result = TypingService.set_typing(conversation_pk, request.user.id)
        if not result:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        operation_id="stop_typing",
        summary="Stop typing",
        responses={204: OpenApiResponse(description="Marker cleared")},
        tags=["Chat - Typing"],
    )
    def delete(self, request, conversation_pk):
        result = TypingService.stop_typing(conversation_pk, request.user.id)
        if not result:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Presence
# =============================================================================


class HeartbeatView(APIView):
    """POST: Mark the caller online."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="presence_heartbeat",
        summary="Presence heartbeat",
        description="Call on app start and every 30 seconds while active.",
        request=None,
        responses={204: OpenApiResponse(description="Online")},
        tags=["Chat - Presence"],
    )
    def post(self, request):
        PresenceService.heartbeat(request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class OfflineView(APIView):
    """POST: Mark the caller offline."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="presence_offline",
        summary="Go offline",
        request=None,
        responses={204: OpenApiResponse(description="Offline")},
        tags=["Chat - Presence"],
    )
    def post(self, request):
        PresenceService.set_offline(request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class UserPresenceView(APIView):
    """GET: One user's presence."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_user_presence",
        summary="Get user presence",
        responses={
            200: PresenceSerializer,
            404: OpenApiResponse(description="User not found"),
        },
        tags=["Chat - Presence"],
    )
    def get(self, request, user_id):
        presence = PresenceService.get_presence(user_id)
        if presence is None:
            return Response(
                {"error": "User not found", "error_code": "NOT_FOUND"},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(PresenceSerializer(presence).data)


class BatchPresenceView(APIView):
    """POST: Presence for several users (unknown ids skipped)."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_batch_presence",
        summary="Get presence for several users",
        request=BatchPresenceRequestSerializer,
        responses={200: PresenceSerializer(many=True)},
        tags=["Chat - Presence"],
    )
    def post(self, request):
        serializer = BatchPresenceRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        presences = PresenceService.get_batch_presence(
            serializer.validated_data["user_ids"]
        )
        return Response(PresenceSerializer(presences, many=True).data)
