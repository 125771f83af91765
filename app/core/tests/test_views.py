"""
Tests for core views: error_response status mapping and the health check.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from django.db import DatabaseError
from django.urls import reverse

from core.services import ServiceResult
from core.views import error_response


class TestErrorResponse:
    @pytest.mark.parametrize(
        ("error_code", "expected_status"),
        [
            ("NOT_A_MEMBER", 403),
            ("UNAUTHORIZED", 403),
            ("NOT_FOUND", 404),
            ("VALIDATION_ERROR", 400),
            ("INVALID_SIGNATURE", 400),
            ("UPSTREAM_SYNC_FAILED", 500),
            ("SOMETHING_ELSE", 400),
            (None, 400),
        ],
    )
    def test_status_mapping(self, error_code, expected_status):
        response = error_response(ServiceResult.failure("Nope", error_code=error_code))

        assert response.status_code == expected_status

    def test_body(self):
        response = error_response(
            ServiceResult.failure(
                "Invalid emoji",
                error_code="VALIDATION_ERROR",
                errors={"emoji": ["This field may not be blank."]},
            )
        )

        assert response.data == {
            "error": "Invalid emoji",
            "error_code": "VALIDATION_ERROR",
            "errors": {"emoji": ["This field may not be blank."]},
        }

    def test_body_without_field_errors(self):
        response = error_response(
            ServiceResult.failure("Not found", error_code="NOT_FOUND")
        )

        assert "errors" not in response.data


@pytest.mark.django_db
class TestHealthCheck:
    def test_healthy(self, client):
        response = client.get(reverse("health_check"))

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "database": "connected",
            "cache": "connected",
        }

    def test_database_down(self, client):
        with patch("core.views.connection") as connection:
            connection.cursor.side_effect = DatabaseError("down")
            response = client.get(reverse("health_check"))

        assert response.status_code == 503
        assert response.json()["database"] == "disconnected"
        assert response.json()["status"] == "unhealthy"
