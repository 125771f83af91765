"""
Tests for the application exception hierarchy.

Every raised error must carry a code that core.views knows how to render.
"""

import pytest

from core import exceptions
from core.exceptions import (
    BaseApplicationError,
    SignatureVerificationError,
    UpstreamSyncError,
    ValidationError,
)
from core.views import ERROR_STATUS_CODES


class TestApplicationErrors:
    @pytest.mark.parametrize(
        ("exc_class", "expected_status"),
        [
            (ValidationError, 400),
            (SignatureVerificationError, 400),
            (UpstreamSyncError, 500),
        ],
    )
    def test_default_code_has_http_status(self, exc_class, expected_status):
        assert ERROR_STATUS_CODES[exc_class.default_error_code] == expected_status

    def test_every_exported_error_is_mapped(self):
        error_classes = [
            obj
            for obj in vars(exceptions).values()
            if isinstance(obj, type)
            and issubclass(obj, BaseApplicationError)
            and obj is not BaseApplicationError
        ]

        assert error_classes
        for exc_class in error_classes:
            assert exc_class.default_error_code in ERROR_STATUS_CODES

    def test_signature_error_is_a_validation_error(self):
        assert issubclass(SignatureVerificationError, ValidationError)

    def test_to_dict(self):
        error = UpstreamSyncError("Sync failed", details={"external_id": "user_1"})

        assert error.to_dict() == {
            "error": "Sync failed",
            "error_code": "UPSTREAM_SYNC_FAILED",
            "details": {"external_id": "user_1"},
        }
        assert str(error) == "[UPSTREAM_SYNC_FAILED] Sync failed"

    def test_explicit_error_code_overrides_default(self):
        error = ValidationError("Bad emoji", error_code="INVALID_EMOJI")

        assert error.error_code == "INVALID_EMOJI"
        assert "details" not in error.to_dict()
