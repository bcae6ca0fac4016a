from __future__ import annotations

from celery import Celery

from reviews_api.core.config import settings

# Producer only: this service publishes review events, consumers live elsewhere.
celery_app = Celery("reviews_api", broker=settings.broker_url)
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    task_default_exchange=settings.events_exchange,
    task_default_exchange_type="topic",
    broker_connection_timeout=settings.lookup_timeout_seconds,
    # Bounded reconnects when publishing to an unreachable broker
    broker_transport_options={"max_retries": 1, "interval_start": 0, "interval_step": 0.2, "interval_max": 0.5},
)
