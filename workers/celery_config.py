"""Celery configuration for the interview background tasks."""

from datetime import timedelta

from kombu import Exchange, Queue

from core.config import settings

broker_url = settings.celery_broker_url
result_backend = settings.celery_result_backend

# Task routing and serialization
task_serializer = "json"
accept_content = ["json"]
result_serializer = "json"
timezone = "UTC"
enable_utc = True

# Task execution settings
task_track_started = True
task_time_limit = 10 * 60  # 10 minutes hard limit
task_soft_time_limit = 8 * 60  # 8 minutes soft limit

# Worker settings
worker_prefetch_multiplier = 1
worker_max_tasks_per_child = 1000

# Queue configuration with routing
default_exchange = Exchange("interviews", type="direct")
task_default_queue = "default"
task_queues = (
    Queue("default", exchange=default_exchange, routing_key="default"),
    Queue("reconciliation", exchange=default_exchange, routing_key="reconciliation"),
    Queue("notifications", exchange=default_exchange, routing_key="notifications"),
)

task_routes = {
    "workers.tasks.interviews.*": {"queue": "reconciliation"},
    "workers.tasks.notifications.*": {"queue": "notifications"},
}

# Periodic reconciliation; every task is idempotent and safe to overlap
beat_schedule = {
    "interview-status-sweep": {
        "task": "workers.tasks.interviews.run_status_sweep",
        "schedule": timedelta(seconds=settings.status_sweep_interval_seconds),
    },
    "interview-reminder-sweep": {
        "task": "workers.tasks.interviews.run_reminder_sweep",
        "schedule": timedelta(seconds=settings.reminder_sweep_interval_seconds),
    },
    "outbox-delivery": {
        "task": "workers.tasks.notifications.deliver_outbox",
        "schedule": timedelta(seconds=settings.outbox_delivery_interval_seconds),
    },
}

# Result backend settings
result_expires = 3600  # Results expire after 1 hour
