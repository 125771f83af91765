"""
Serializer building blocks shared by the domain apps.

Available:
    EpochMillisecondsField: Datetime rendered as integer epoch milliseconds
    EpochTimestampMixin: ModelSerializer mixin mapping every DateTimeField
        to EpochMillisecondsField

Usage:
    from core.serializer_mixins import EpochTimestampMixin

    class MessageSerializer(EpochTimestampMixin, serializers.ModelSerializer):
        class Meta:
            model = Message
            fields = ["id", "body", "created_at"]  # created_at -> 1718000000000
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import models
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema_field
from rest_framework import serializers

from core.helpers import from_epoch_ms, to_epoch_ms

if TYPE_CHECKING:
    from datetime import datetime


@extend_schema_field(OpenApiTypes.INT)
class EpochMillisecondsField(serializers.Field):
    """
    Datetime <-> integer epoch milliseconds.

    Output is an int (or None); input accepts an int and returns an aware
    UTC datetime.
    """

    default_error_messages = {
        "invalid": "Expected an integer number of milliseconds since the epoch.",
    }

    def to_representation(self, value: datetime | None) -> int | None:
        return to_epoch_ms(value)

    def to_internal_value(self, data) -> datetime:
        if isinstance(data, bool):
            self.fail("invalid")
        try:
            return from_epoch_ms(int(data))
        except (TypeError, ValueError, OverflowError, OSError):
            self.fail("invalid")


class EpochTimestampMixin:
    """
    Render model DateTimeFields as epoch milliseconds.

    Works by extending ModelSerializer.serializer_field_mapping, so any
    DateTimeField picked up from Meta.fields (created_at, last_seen_at, ...)
    becomes an EpochMillisecondsField without per-field declarations.
    """

    serializer_field_mapping = {
        **serializers.ModelSerializer.serializer_field_mapping,
        models.DateTimeField: EpochMillisecondsField,
    }
