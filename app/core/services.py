"""
Base service layer patterns for business logic encapsulation.

This module provides the two building blocks every domain service uses:
- ServiceResult: Standard result wrapper for expected success/failure outcomes
- BaseService: Base class with logging and transaction helpers

Service Layer Philosophy:
    Views translate HTTP, models hold data, services own the rules.
    A service method checks authorization first, then performs its writes
    inside one transaction so concurrent readers never see half a mutation.

Pattern Comparison:
    - ServiceResult: expected failures (not a member, not found, validation)
    - Exceptions: unexpected failures (database outages, programming errors)

Usage:
    from core.services import BaseService, ServiceResult

    class MessageService(BaseService):
        @classmethod
        def send_message(cls, conversation_id, sender_id, body) -> ServiceResult[Message]:
            with cls.atomic():
                if not Membership.objects.filter(
                    conversation_id=conversation_id, user_id=sender_id
                ).exists():
                    return ServiceResult.failure(
                        "You are not a member of this conversation",
                        error_code="NOT_A_MEMBER",
                    )
                message = Message.objects.create(...)

            cls.get_logger().info(f"Message {message.id} sent")
            return ServiceResult.success(message)

    # In a view
    result = MessageService.send_message(conversation_id, request.user.id, body)
    if result:
        return Response(MessageSerializer(result.data).data, status=201)
    return error_response(result)

Related:
    - core.exceptions: raised errors for exceptional paths
    - core.views: error_code -> HTTP status mapping
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Expected failures travel as values instead of exceptions, so callers
    branch on the outcome explicitly.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed)
        error: Human-readable error message if failed
        error_code: Machine-readable error code (NOT_A_MEMBER, NOT_FOUND, ...)
        errors: Field-level errors for validation failures

    Usage:
        result = ConversationService.create_group("Team", [bob.id], alice.id)
        if result.success:
            conversation = result.data
        else:
            logger.info(f"{result.error_code}: {result.error}")
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """
        Create a successful result.

        Args:
            data: The result data (may be None for side-effect-only operations)

        Returns:
            ServiceResult with success=True and data set
        """
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code for client handling
            errors: Field-level errors (for validation failures)

        Returns:
            ServiceResult with success=False and error details

        Example:
            return ServiceResult.failure(
                "A group needs at least 2 members",
                error_code="VALIDATION_ERROR",
                errors={"member_ids": ["Add at least one other member."]},
            )
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    def __bool__(self) -> bool:
        """Truthiness mirrors success."""
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Services are stateless collections of classmethods. This base provides:
    - a logger named after the concrete service
    - an explicit transaction boundary

    Usage:
        class TypingService(BaseService):
            @classmethod
            def stop_typing(cls, conversation_id, user_id) -> ServiceResult[None]:
                with cls.atomic():
                    TypingMarker.objects.filter(
                        conversation_id=conversation_id, user_id=user_id
                    ).delete()
                return ServiceResult.success(None)
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get logger for this service.

        Returns:
            Logger named "<module>.<ServiceClass>" for easy filtering
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        Everything inside the block commits together or not at all. Blocks
        nest as savepoints, so a service may call another service's
        atomic section safely.

        Example:
            with cls.atomic():
                conversation = Conversation.objects.create(is_group=True, name=name)
                Membership.objects.bulk_create(memberships)
        """
        with transaction.atomic():
            yield
