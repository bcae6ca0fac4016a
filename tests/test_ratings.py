from datetime import datetime

import pytest

from reviews_api.models.enums import EntityType
from reviews_api.models.reviews import Review
from reviews_api.services.ratings import ReviewAggregator


def _add(store, user_id, rating, *, entity_type=EntityType.service, entity_id=10):
    ts = datetime(2024, 5, 1, 9, user_id)
    store.insert(
        Review(
            entity_type=entity_type.value,
            entity_id=entity_id,
            user_id=user_id,
            rating=rating,
            created_at=ts,
            updated_at=ts,
        )
    )


def test_entity_without_reviews_gets_zeroed_summary(store):
    summary = ReviewAggregator(store).summarize(EntityType.provider, 404)

    assert summary.average_rating == 0.0
    assert summary.total_reviews == 0
    assert summary.distribution == {5: 0, 4: 0, 3: 0, 2: 0, 1: 0}
    assert summary.entity_type is EntityType.provider
    assert summary.entity_id == 404


def test_average_and_distribution(store):
    for user_id, rating in enumerate([5, 5, 4, 3, 1], start=1):
        _add(store, user_id, rating)

    summary = ReviewAggregator(store).summarize(EntityType.service, 10)

    assert summary.average_rating == pytest.approx(3.6)
    assert summary.total_reviews == 5
    assert summary.distribution == {5: 2, 4: 1, 3: 1, 2: 0, 1: 1}


def test_summary_only_counts_the_requested_entity(store):
    _add(store, 1, 5, entity_type=EntityType.service, entity_id=10)
    _add(store, 2, 1, entity_type=EntityType.provider, entity_id=10)
    _add(store, 3, 2, entity_type=EntityType.service, entity_id=12)

    summary = ReviewAggregator(store).summarize(EntityType.service, 10)

    assert summary.total_reviews == 1
    assert summary.average_rating == pytest.approx(5.0)
    assert summary.distribution[1] == 0


def test_summary_reflects_deletes_immediately(store):
    _add(store, 1, 5)
    _add(store, 2, 1)
    aggregator = ReviewAggregator(store)
    assert aggregator.summarize(EntityType.service, 10).average_rating == pytest.approx(3.0)

    review, *_ = store.find_recent(EntityType.service, 10, 1)
    store.delete(review)

    summary = aggregator.summarize(EntityType.service, 10)
    assert summary.total_reviews == 1
    assert summary.average_rating == pytest.approx(5.0)
