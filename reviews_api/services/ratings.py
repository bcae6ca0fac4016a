from __future__ import annotations

from reviews_api.db.crud import ReviewStore
from reviews_api.models.enums import EntityType
from reviews_api.schemas.reviews import RatingSummary

STAR_VALUES = (1, 2, 3, 4, 5)


class ReviewAggregator:
    """Rating statistics computed on demand from the review table.

    Nothing is cached or stored on the entity. The average and each star count
    are separate queries, so under concurrent writes they may reflect slightly
    different moments; the figures are advisory.
    """

    def __init__(self, store: ReviewStore) -> None:
        self.store = store

    def summarize(self, entity_type: EntityType, entity_id: int) -> RatingSummary:
        average = self.store.average_rating(entity_type, entity_id)
        total = self.store.count_all(entity_type, entity_id)
        distribution = {
            stars: self.store.count_by_rating(entity_type, entity_id, stars) for stars in reversed(STAR_VALUES)
        }
        return RatingSummary(
            entity_id=entity_id,
            entity_type=entity_type,
            average_rating=average if average is not None else 0.0,
            total_reviews=total,
            distribution=distribution,
        )
