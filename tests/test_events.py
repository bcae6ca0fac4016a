import logging
import time
from datetime import datetime

import anyio
import pytest

from reviews_api.models.enums import EntityType
from reviews_api.models.reviews import Review
from reviews_api.schemas.events import RatingChanged

pytestmark = pytest.mark.anyio


def _review():
    ts = datetime(2024, 6, 1, 8, 30)
    return Review(
        id=42,
        entity_type="provider",
        entity_id=7,
        user_id=1,
        rating=4,
        comment="Kind and punctual",
        created_at=ts,
        updated_at=ts,
    )


async def test_review_created_goes_to_exchange_with_its_routing_key(notifier, broker):
    await notifier.review_created(_review())

    (name, payload, options), = broker.sent
    assert name == "review.created"
    assert options["exchange"] == "reviews.test"
    assert options["routing_key"] == "review.created"
    assert options["retry"] is False
    assert payload == {
        "review_id": 42,
        "entity_type": "provider",
        "entity_id": 7,
        "user_id": 1,
        "rating": 4,
        "comment": "Kind and punctual",
        "created_at": "2024-06-01T08:30:00",
    }


async def test_each_event_kind_has_its_own_routing_key(notifier, broker):
    review = _review()
    await notifier.review_updated(review)
    await notifier.review_deleted(review_id=42, entity_type=EntityType.provider, entity_id=7, user_id=1)
    await notifier.rating_changed(EntityType.provider, 7)

    assert broker.routing_keys == ["review.updated", "review.deleted", "review.rating.changed"]
    deleted = broker.sent[1][1]
    assert deleted["review_id"] == 42
    assert "deleted_at" in deleted


async def test_broker_failure_is_logged_not_raised(notifier, broker, caplog):
    broker.down = True

    with caplog.at_level(logging.ERROR, logger="reviews_api.services.events"):
        ok = await notifier.publish(RatingChanged(entity_type=EntityType.service, entity_id=10))

    assert ok is False
    assert broker.sent == []
    assert "Failed to publish RatingChanged" in caplog.text


async def test_slow_broker_does_not_stall_the_event_loop(notifier, broker):
    broker.delay = 0.6
    broker.down = True
    ticks: list[float] = []

    async def ticker():
        while True:
            ticks.append(time.monotonic())
            await anyio.sleep(0.02)

    async with anyio.create_task_group() as tg:
        tg.start_soon(ticker)
        ok = await notifier.publish(RatingChanged(entity_type=EntityType.service, entity_id=10))
        tg.cancel_scope.cancel()

    assert ok is False
    gaps = [b - a for a, b in zip(ticks, ticks[1:])]
    assert len(ticks) > 10
    assert max(gaps) < 0.3
