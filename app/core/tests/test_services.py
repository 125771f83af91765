"""
Tests for ServiceResult and BaseService.

These tests verify that:
- success/failure results carry the right fields and truthiness
- BaseService.atomic() commits or rolls back as one unit
- each service gets a logger named after its class
"""

from __future__ import annotations

import pytest
from django.contrib.auth import get_user_model

from core.services import BaseService, ServiceResult
from users.tests.factories import UserFactory


class ExampleService(BaseService):
    @classmethod
    def rename_then_fail(cls, user, display_name):
        with cls.atomic():
            user.display_name = display_name
            user.save(update_fields=["display_name"])
            raise RuntimeError("boom")


class TestServiceResult:
    def test_success(self):
        result = ServiceResult.success({"id": 1})

        assert result.success is True
        assert result.data == {"id": 1}
        assert result.error is None
        assert result.error_code is None
        assert bool(result) is True

    def test_success_without_data(self):
        result = ServiceResult.success(None)

        assert result
        assert result.data is None

    def test_failure(self):
        result = ServiceResult.failure(
            "A group needs at least 2 members",
            error_code="VALIDATION_ERROR",
            errors={"member_ids": ["Add at least one other member."]},
        )

        assert result.success is False
        assert bool(result) is False
        assert result.data is None
        assert result.error == "A group needs at least 2 members"
        assert result.error_code == "VALIDATION_ERROR"
        assert result.errors == {"member_ids": ["Add at least one other member."]}

    def test_failure_defaults(self):
        result = ServiceResult.failure("Nope")

        assert result.error_code is None
        assert result.errors is None


class TestBaseService:
    def test_logger_named_after_service(self):
        assert ExampleService.get_logger().name == f"{__name__}.ExampleService"

    @pytest.mark.django_db
    def test_atomic_rolls_back_on_error(self):
        user = UserFactory(display_name="Before")

        with pytest.raises(RuntimeError):
            ExampleService.rename_then_fail(user, "After")

        assert get_user_model().objects.get(id=user.id).display_name == "Before"
