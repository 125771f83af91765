"""
Celery configuration for the chat backend.

Runs the periodic housekeeping tasks in chat.tasks:
- sweep_expired_typing_markers
- mark_stale_users_offline (only when PRESENCE_STALE_SWEEP_ENABLED)

Redis is both broker and result backend. Tasks are auto-discovered from
installed apps; the schedule lives in settings.CELERY_BEAT_SCHEDULE and is
loaded into django-celery-beat's DatabaseScheduler.

Usage:
    celery -A config worker -l info
    celery -A config beat -l info

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("chat_backend")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
