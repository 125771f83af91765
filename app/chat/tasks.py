"""
Celery tasks for chat app.

This module defines periodic housekeeping tasks:
- Typing marker sweep
- Stale presence sweep (opt-in)

Related files:
    - services.py: TypingService, PresenceService
    - config/settings.py: CELERY_BEAT_SCHEDULE

Usage:
    from chat.tasks import sweep_expired_typing_markers

    sweep_expired_typing_markers.delay()
"""

import logging

from celery import shared_task
from django.conf import settings

from chat.services import PresenceService, TypingService

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def sweep_expired_typing_markers(self) -> int:
    """
    Delete typing markers whose TTL has passed.

    set_typing already sweeps on every write; this covers conversations
    that went quiet.

    Returns:
        Number of markers deleted
    """
    deleted = TypingService.sweep_expired()
    logger.info(f"Typing sweep removed {deleted} markers")
    return deleted


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def mark_stale_users_offline(self, threshold_seconds: int | None = None) -> int:
    """
    Mark users offline when their heartbeats stopped.

    Does nothing unless PRESENCE_STALE_SWEEP_ENABLED is set; presence is
    otherwise fully client-driven.

    Args:
        threshold_seconds: Seconds since last heartbeat (defaults to
            PRESENCE_STALE_AFTER_SECONDS)

    Returns:
        Number of users marked offline
    """
    if not settings.PRESENCE_STALE_SWEEP_ENABLED:
        logger.debug("Stale presence sweep disabled")
        return 0

    if threshold_seconds is None:
        threshold_seconds = settings.PRESENCE_STALE_AFTER_SECONDS

    return PresenceService.mark_stale_users_offline(threshold_seconds)
