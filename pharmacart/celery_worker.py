# pharmacart/celery_worker.py
from celery import Celery
import os

from pharmacart.utils.settings import CELERY_BROKER_URL

RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://redis:6379/2")

celery_app = Celery(
    "pharmacart",
    broker=CELERY_BROKER_URL,
    backend=RESULT_BACKEND,
)

#explicit import so the worker registers the task
celery_app.conf.imports = (
    "pharmacart.services.notification_service",
)

celery_app.conf.timezone = "UTC"
