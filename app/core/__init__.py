"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by the domain apps (users, chat). No chat
rules live here.

Services (import from core.services):
    - BaseService: Base class for service layer (logging, transactions)
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - ValidationError / SignatureVerificationError: bad input
    - UpstreamSyncError: identity sync could not be persisted

Models (import from core.models):
    - BaseModel: Abstract model with created_at / updated_at

Serializers (import from core.serializer_mixins):
    - EpochMillisecondsField, EpochTimestampMixin

Helpers (import from core.helpers):
    - to_epoch_ms, from_epoch_ms

Views (import from core.views):
    - health_check, error_response

Note:
    Models and serializer helpers are NOT imported here because they need
    the app registry. Import them from their modules directly.
"""

from .exceptions import (
    BaseApplicationError,
    SignatureVerificationError,
    UpstreamSyncError,
    ValidationError,
)
from .services import BaseService, ServiceResult

__all__ = [
    "BaseService",
    "ServiceResult",
    "BaseApplicationError",
    "ValidationError",
    "SignatureVerificationError",
    "UpstreamSyncError",
]
