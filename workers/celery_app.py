"""Celery app factory."""

from celery import Celery

celery_app = Celery(
    "interviews",
    include=[
        "workers.tasks.interviews",
        "workers.tasks.notifications",
    ],
)
celery_app.config_from_object("workers.celery_config")
