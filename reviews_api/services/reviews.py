from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta

import anyio

from reviews_api.clients.users import DirectoryUser, UserDirectoryClient
from reviews_api.core.config import settings
from reviews_api.core.errors import (
    DuplicateReviewError,
    EntityNotFoundError,
    ReviewNotFoundError,
    ReviewValidationError,
    UnauthorizedAccessError,
)
from reviews_api.db.crud import SORT_KEYS, ReviewStore
from reviews_api.models.enums import EntityType
from reviews_api.models.reviews import Review, utcnow
from reviews_api.schemas.reviews import MAX_COMMENT_LENGTH, RatingSummary, ReviewPage, ReviewResponse
from reviews_api.services.events import EventNotifier
from reviews_api.services.ratings import ReviewAggregator
from reviews_api.services.resolver import EntityResolver

logger = logging.getLogger(__name__)


def _clean_comment(comment: str | None) -> str | None:
    return (comment or "").strip() or None


def _validate(rating: int, comment: str | None) -> None:
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ReviewValidationError("Rating must be an integer between 1 and 5")
    if comment is not None and len(comment) > MAX_COMMENT_LENGTH:
        raise ReviewValidationError(f"Comment must be at most {MAX_COMMENT_LENGTH} characters")


def _later_than(previous: datetime) -> datetime:
    now = utcnow()
    return now if now > previous else previous + timedelta(microseconds=1)


class ReviewManager:
    """Create/update/delete reviews and assemble their read views.

    Only the author may change or remove a review, and a user reviews a given
    entity at most once. Every review handed back is decorated with its
    author's current name and photo; a failed profile lookup falls back to an
    anonymous placeholder rather than failing the call.
    """

    def __init__(
        self,
        *,
        store: ReviewStore,
        resolver: EntityResolver,
        directory: UserDirectoryClient,
        notifier: EventNotifier,
        aggregator: ReviewAggregator | None = None,
        lookup_timeout_seconds: float | None = None,
        max_page_size: int | None = None,
        max_recent_limit: int | None = None,
        anonymous_user_name: str | None = None,
    ) -> None:
        self.store = store
        self.resolver = resolver
        self.directory = directory
        self.notifier = notifier
        self.aggregator = aggregator or ReviewAggregator(store)
        self.lookup_timeout_seconds = lookup_timeout_seconds or settings.lookup_timeout_seconds
        self.max_page_size = max_page_size or settings.max_page_size
        self.max_recent_limit = max_recent_limit or settings.max_recent_limit
        self.anonymous_user_name = anonymous_user_name or settings.anonymous_user_name

    # Mutations

    async def create_review(
        self,
        *,
        entity_type: EntityType | str,
        entity_id: int,
        rating: int,
        comment: str | None,
        requester_id: int,
    ) -> ReviewResponse:
        comment = _clean_comment(comment)
        _validate(rating, comment)

        descriptor = await self.resolver.resolve(entity_type, entity_id)
        if descriptor is None:
            raise EntityNotFoundError(f"Reviewable {entity_type} {entity_id} not found")

        kind = descriptor.type
        if self.store.exists(kind, entity_id, requester_id):
            raise DuplicateReviewError("This user has already reviewed this entity")

        now = utcnow()
        review = self.store.insert(
            Review(
                entity_type=kind.value,
                entity_id=entity_id,
                user_id=requester_id,
                rating=rating,
                comment=comment,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info("Review %s created for %s %s by user %s", review.id, kind.value, entity_id, requester_id)

        await self.notifier.review_created(review)
        await self.notifier.rating_changed(kind, entity_id)
        return await self._to_response(review)

    async def update_review(
        self,
        *,
        review_id: int,
        rating: int,
        comment: str | None,
        requester_id: int,
    ) -> ReviewResponse:
        comment = _clean_comment(comment)
        _validate(rating, comment)

        review = self._load_owned(review_id, requester_id, action="modify")
        old_rating = review.rating

        review.rating = rating
        review.comment = comment
        review.updated_at = _later_than(review.updated_at)
        review = self.store.update(review)
        logger.info("Review %s updated by user %s", review_id, requester_id)

        await self.notifier.review_updated(review)
        if old_rating != rating:
            await self.notifier.rating_changed(EntityType(review.entity_type), review.entity_id)
        return await self._to_response(review)

    async def delete_review(self, *, review_id: int, requester_id: int) -> None:
        review = self._load_owned(review_id, requester_id, action="delete")
        kind, entity_id, user_id = EntityType(review.entity_type), review.entity_id, review.user_id

        self.store.delete(review)
        logger.info("Review %s deleted by user %s", review_id, requester_id)

        await self.notifier.review_deleted(review_id=review_id, entity_type=kind, entity_id=entity_id, user_id=user_id)
        await self.notifier.rating_changed(kind, entity_id)

    # Reads

    async def get_review(self, review_id: int) -> ReviewResponse:
        return await self._to_response(self._load(review_id))

    async def list_reviews(
        self,
        entity_type: EntityType | str,
        entity_id: int,
        *,
        page: int = 0,
        size: int | None = None,
        sort_key: str = "created_at",
    ) -> ReviewPage:
        kind = self._entity_type(entity_type)
        page, size = self._page_bounds(page, size)
        if sort_key not in SORT_KEYS:
            raise ReviewValidationError(f"Unsupported sort key: {sort_key}")

        items, total = self.store.find_page(kind, entity_id, page=page, size=size, sort_key=sort_key)
        return await self._to_page(items, total=total, page=page, size=size)

    async def list_user_reviews(self, user_id: int, *, page: int = 0, size: int | None = None) -> ReviewPage:
        page, size = self._page_bounds(page, size)
        items, total = self.store.find_by_user(user_id, page=page, size=size)
        return await self._to_page(items, total=total, page=page, size=size)

    async def recent_reviews(self, entity_type: EntityType | str, entity_id: int, *, limit: int = 5) -> list[ReviewResponse]:
        kind = self._entity_type(entity_type)
        if limit < 1:
            raise ReviewValidationError("limit must be at least 1")
        reviews = self.store.find_recent(kind, entity_id, min(limit, self.max_recent_limit))
        return await self._to_responses(reviews)

    def rating_summary(self, entity_type: EntityType | str, entity_id: int) -> RatingSummary:
        return self.aggregator.summarize(self._entity_type(entity_type), entity_id)

    # Helpers

    @staticmethod
    def _entity_type(raw: EntityType | str) -> EntityType:
        kind = EntityType.parse(raw)
        if kind is None:
            raise ReviewValidationError(f"Unsupported entity type: {raw}")
        return kind

    def _page_bounds(self, page: int, size: int | None) -> tuple[int, int]:
        size = settings.default_page_size if size is None else size
        if page < 0:
            raise ReviewValidationError("page must be zero or greater")
        if size < 1:
            raise ReviewValidationError("size must be at least 1")
        return page, min(size, self.max_page_size)

    def _load(self, review_id: int) -> Review:
        review = self.store.find_by_id(review_id)
        if review is None:
            raise ReviewNotFoundError(f"Review {review_id} not found")
        return review

    def _load_owned(self, review_id: int, requester_id: int, *, action: str) -> Review:
        review = self._load(review_id)
        if review.user_id != requester_id:
            logger.warning("User %s tried to %s review %s owned by %s", requester_id, action, review_id, review.user_id)
            raise UnauthorizedAccessError(f"You are not allowed to {action} this review")
        return review

    async def _fetch_author(self, user_id: int) -> DirectoryUser | None:
        try:
            with anyio.fail_after(self.lookup_timeout_seconds):
                return await self.directory.get_user(user_id)
        except TimeoutError:
            logger.warning("Profile lookup for user %s timed out", user_id)
        except Exception as e:
            logger.warning("Could not load profile for user %s: %s", user_id, e)
        return None

    def _build_response(self, review: Review, author: DirectoryUser | None) -> ReviewResponse:
        name = author.full_name if author else ""
        return ReviewResponse(
            id=review.id,
            entity_type=review.entity_type,
            entity_id=review.entity_id,
            user_id=review.user_id,
            user_name=name or self.anonymous_user_name,
            user_photo=author.photo_url if author else None,
            rating=review.rating,
            comment=review.comment,
            created_at=review.created_at,
            updated_at=review.updated_at,
        )

    async def _to_response(self, review: Review) -> ReviewResponse:
        return self._build_response(review, await self._fetch_author(review.user_id))

    async def _to_responses(self, reviews: Iterable[Review]) -> list[ReviewResponse]:
        # One profile lookup per author per response.
        authors: dict[int, DirectoryUser | None] = {}
        out: list[ReviewResponse] = []
        for review in reviews:
            if review.user_id not in authors:
                authors[review.user_id] = await self._fetch_author(review.user_id)
            out.append(self._build_response(review, authors[review.user_id]))
        return out

    async def _to_page(self, reviews: list[Review], *, total: int, page: int, size: int) -> ReviewPage:
        return ReviewPage(
            items=await self._to_responses(reviews),
            total=total,
            page=page,
            size=size,
            total_pages=(total + size - 1) // size,
        )
