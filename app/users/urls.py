"""
URL configuration for the users app.

Mounted at /api/v1/users/ by config.urls.
"""

from django.urls import path

from users import views
from users.webhooks import IdentityWebhookView

app_name = "users"

urlpatterns = [
    path("", views.UserListView.as_view(), name="user-list"),
    path("me/", views.CurrentUserView.as_view(), name="current-user"),
    path("sync/", views.UserSyncView.as_view(), name="user-sync"),
    path(
        "by-external-id/<str:external_id>/",
        views.UserByExternalIdView.as_view(),
        name="user-by-external-id",
    ),
    path(
        "webhooks/identity/",
        IdentityWebhookView.as_view(),
        name="identity-webhook",
    ),
]
