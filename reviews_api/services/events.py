from __future__ import annotations

import logging
from functools import partial

import anyio
from celery import Celery

from reviews_api.core.config import settings
from reviews_api.models.enums import EntityType
from reviews_api.models.reviews import Review
from reviews_api.schemas.events import RatingChanged, ReviewCreated, ReviewDeleted, ReviewEvent, ReviewUpdated

logger = logging.getLogger(__name__)


def _routing_keys() -> dict[type, str]:
    return {
        ReviewCreated: settings.routing_key_review_created,
        ReviewUpdated: settings.routing_key_review_updated,
        ReviewDeleted: settings.routing_key_review_deleted,
        RatingChanged: settings.routing_key_rating_changed,
    }


class EventNotifier:
    """Fire-and-forget publisher of review lifecycle events.

    Publishing failures are logged and dropped; they never reach the caller and
    never undo the change that triggered them.
    """

    def __init__(self, app: Celery, *, exchange: str | None = None) -> None:
        self.app = app
        self.exchange = exchange or settings.events_exchange
        self._routing_keys = _routing_keys()

    async def publish(self, event: ReviewEvent) -> bool:
        routing_key = self._routing_keys[type(event)]
        # kombu connects and writes synchronously; keep it off the event loop
        fn = partial(
            self.app.send_task,
            routing_key,
            kwargs=event.model_dump(mode="json"),
            exchange=self.exchange,
            routing_key=routing_key,
            retry=False,
        )
        try:
            await anyio.to_thread.run_sync(fn)
        except Exception:
            logger.exception("Failed to publish %s", type(event).__name__)
            return False
        logger.info("Event published: %s (%s)", type(event).__name__, routing_key)
        return True

    async def review_created(self, review: Review) -> None:
        await self.publish(
            ReviewCreated(
                review_id=review.id,
                entity_type=review.entity_type,
                entity_id=review.entity_id,
                user_id=review.user_id,
                rating=review.rating,
                comment=review.comment,
                created_at=review.created_at,
            )
        )

    async def review_updated(self, review: Review) -> None:
        await self.publish(
            ReviewUpdated(
                review_id=review.id,
                entity_type=review.entity_type,
                entity_id=review.entity_id,
                user_id=review.user_id,
                rating=review.rating,
                comment=review.comment,
                updated_at=review.updated_at,
            )
        )

    async def review_deleted(
        self, *, review_id: int, entity_type: EntityType, entity_id: int, user_id: int
    ) -> None:
        await self.publish(
            ReviewDeleted(review_id=review_id, entity_type=entity_type, entity_id=entity_id, user_id=user_id)
        )

    async def rating_changed(self, entity_type: EntityType, entity_id: int) -> None:
        await self.publish(RatingChanged(entity_type=entity_type, entity_id=entity_id))
