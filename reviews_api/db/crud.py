from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from reviews_api.core.errors import DuplicateReviewError
from reviews_api.models.enums import EntityType
from reviews_api.models.reviews import Review

logger = logging.getLogger(__name__)

SORT_KEYS = {
    "created_at": Review.created_at,
    "updated_at": Review.updated_at,
    "rating": Review.rating,
}


def _entity_filter(entity_type: EntityType, entity_id: int):
    return (Review.entity_type == entity_type.value, Review.entity_id == entity_id)


class ReviewStore:
    """Review persistence on top of one SQLAlchemy session.

    Pagination is zero-indexed and unbounded here; callers clamp page sizes.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def exists(self, entity_type: EntityType, entity_id: int, user_id: int) -> bool:
        stmt = select(Review.id).where(*_entity_filter(entity_type, entity_id), Review.user_id == user_id)
        return self.db.scalar(stmt.limit(1)) is not None

    def insert(self, review: Review) -> Review:
        self.db.add(review)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            # The unique constraint closes the exists()/insert() race; the loser lands here.
            if self.exists(EntityType(review.entity_type), review.entity_id, review.user_id):
                raise DuplicateReviewError("This user has already reviewed this entity") from None
            raise
        self.db.refresh(review)
        return review

    def find_by_id(self, review_id: int) -> Review | None:
        return self.db.get(Review, review_id)

    def find_page(
        self,
        entity_type: EntityType,
        entity_id: int,
        *,
        page: int,
        size: int,
        sort_key: str = "created_at",
    ) -> tuple[list[Review], int]:
        column = SORT_KEYS.get(sort_key)
        if column is None:
            raise ValueError(f"Unsupported sort key: {sort_key}")

        stmt = (
            select(Review)
            .where(*_entity_filter(entity_type, entity_id))
            .order_by(column.desc(), Review.id.desc())
        )
        items = list(self.db.scalars(stmt.limit(size).offset(page * size)).all())
        return items, self.count_all(entity_type, entity_id)

    def find_by_user(self, user_id: int, *, page: int, size: int) -> tuple[list[Review], int]:
        stmt = select(Review).where(Review.user_id == user_id).order_by(Review.created_at.desc(), Review.id.desc())
        total = self.db.scalar(select(func.count(Review.id)).where(Review.user_id == user_id))
        items = list(self.db.scalars(stmt.limit(size).offset(page * size)).all())
        return items, int(total or 0)

    def count_all(self, entity_type: EntityType, entity_id: int) -> int:
        stmt = select(func.count(Review.id)).where(*_entity_filter(entity_type, entity_id))
        return int(self.db.scalar(stmt) or 0)

    def count_by_rating(self, entity_type: EntityType, entity_id: int, rating: int) -> int:
        stmt = select(func.count(Review.id)).where(*_entity_filter(entity_type, entity_id), Review.rating == rating)
        return int(self.db.scalar(stmt) or 0)

    def average_rating(self, entity_type: EntityType, entity_id: int) -> float | None:
        avg = self.db.scalar(select(func.avg(Review.rating)).where(*_entity_filter(entity_type, entity_id)))
        return float(avg) if avg is not None else None

    def find_recent(self, entity_type: EntityType, entity_id: int, limit: int) -> list[Review]:
        stmt = (
            select(Review)
            .where(*_entity_filter(entity_type, entity_id))
            .order_by(Review.created_at.desc(), Review.id.desc())
            .limit(limit)
        )
        return list(self.db.scalars(stmt).all())

    def update(self, review: Review) -> Review:
        self.db.add(review)
        self.db.commit()
        self.db.refresh(review)
        return review

    def delete(self, review: Review) -> None:
        self.db.delete(review)
        self.db.commit()
        logger.debug("Review %s removed from store", review.id)
