"""
Core views providing infrastructure endpoints and shared response helpers.

Contents:
    health_check: Liveness/readiness probe
    error_response: Render a failed ServiceResult with the right HTTP status
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse
from rest_framework import status
from rest_framework.response import Response

from core.exceptions import (
    SignatureVerificationError,
    UpstreamSyncError,
    ValidationError,
)

if TYPE_CHECKING:
    from core.services import ServiceResult

logger = logging.getLogger(__name__)

# error_code -> HTTP status for failed service results and raised errors
ERROR_STATUS_CODES: dict[str, int] = {
    "NOT_A_MEMBER": status.HTTP_403_FORBIDDEN,
    "UNAUTHORIZED": status.HTTP_403_FORBIDDEN,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    ValidationError.default_error_code: status.HTTP_400_BAD_REQUEST,
    SignatureVerificationError.default_error_code: status.HTTP_400_BAD_REQUEST,
    UpstreamSyncError.default_error_code: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_response(result: ServiceResult) -> Response:
    """
    Build the API response for a failed ServiceResult.

    Unknown error codes fall back to 400.

    Returns:
        Response with {"error", "error_code"} (and "errors" when present)
    """
    body = {"error": result.error, "error_code": result.error_code}
    if result.errors:
        body["errors"] = result.errors
    http_status = ERROR_STATUS_CODES.get(
        result.error_code or "", status.HTTP_400_BAD_REQUEST
    )
    return Response(body, status=http_status)


def health_check(request):
    """
    Health check endpoint for monitoring and orchestration.

    Returns:
        200 with {"status": "healthy", ...} when the database answers,
        503 otherwise. Cache trouble is reported but never fails the probe.
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "cache": "unknown",
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except DatabaseError:
        logger.exception("Health check database probe failed")
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    cache.set("health_check", "ok", timeout=1)
    health_status["cache"] = (
        "connected" if cache.get("health_check") == "ok" else "disconnected"
    )

    return JsonResponse(health_status, status=200 if is_healthy else 503)
