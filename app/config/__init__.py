# =============================================================================
# Django project configuration: settings, URLs, the ASGI application and the
# Celery app.
#
# The Celery app is imported here so it is loaded with Django and
# autodiscovers the tasks of every installed app (chat sweeps).
# =============================================================================

from config.celery import app as celery_app

__all__ = ("celery_app",)
