"""
User directory views.

Endpoints:
    GET  /api/v1/users/                                 People list (excludes caller)
    GET  /api/v1/users/me/                              Current user
    POST /api/v1/users/sync/                            Upsert the caller's profile
    GET  /api/v1/users/by-external-id/<external_id>/    Lookup by provider id

The identity webhook lives in webhooks.py.
"""

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from users.serializers import (
    UserSearchQuerySerializer,
    UserSerializer,
    UserSyncSerializer,
)
from users.services import ANONYMOUS_DISPLAY_NAME, UserService


class UserListView(APIView):
    """
    People list for the current user.

    GET: Every other user, online first, then by display name.
        ?search= filters on display name or email (case-insensitive).
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="users_list",
        summary="List other users",
        description=(
            "List every user except the caller. Online users come first, then "
            "alphabetical by display name. Optional `search` filters on a "
            "case-insensitive substring of display name or email."
        ),
        parameters=[
            OpenApiParameter(
                name="search",
                type=str,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Substring of display name or email",
            ),
        ],
        responses={200: UserSerializer(many=True)},
        tags=["Users"],
    )
    def get(self, request):
        query = UserSearchQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        users = UserService.list_excluding(
            current_user_id=request.user.id,
            search=query.validated_data["search"],
        )
        return Response(UserSerializer(users, many=True).data)


class CurrentUserView(APIView):
    """GET: The authenticated user."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="users_me",
        summary="Get current user",
        responses={200: UserSerializer},
        tags=["Users"],
    )
    def get(self, request):
        return Response(UserSerializer(request.user).data)


class UserSyncView(APIView):
    """
    Client-side profile sync.

    POST: Create or patch the caller's own profile fields. Presence state
        is never touched.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="users_sync",
        summary="Sync current user's profile",
        description=(
            "Upsert the authenticated user's email, display name and avatar. "
            "Repeating the call with the same body is idempotent."
        ),
        request=UserSyncSerializer,
        responses={
            200: UserSerializer,
            400: OpenApiResponse(description="Validation error"),
        },
        tags=["Users"],
    )
    def post(self, request):
        serializer = UserSyncSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user = UserService.upsert(
            external_id=request.user.external_id,
            email=data["email"],
            display_name=data["display_name"].strip() or ANONYMOUS_DISPLAY_NAME,
            avatar_url=data["avatar_url"],
        )
        return Response(UserSerializer(user).data, status=status.HTTP_200_OK)


class UserByExternalIdView(APIView):
    """GET: Look a user up by identity-provider id."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="users_by_external_id",
        summary="Get user by external id",
        responses={
            200: UserSerializer,
            404: OpenApiResponse(description="No user with this external id"),
        },
        tags=["Users"],
    )
    def get(self, request, external_id):
        user = UserService.get_by_external_id(external_id)
        if user is None:
            return Response(
                {"error": "User not found", "error_code": "NOT_FOUND"},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(UserSerializer(user).data)
