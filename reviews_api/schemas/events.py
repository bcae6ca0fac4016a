from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from reviews_api.models.enums import EntityType
from reviews_api.models.reviews import utcnow


class ReviewCreated(BaseModel):
    review_id: int
    entity_type: EntityType
    entity_id: int
    user_id: int
    rating: int
    comment: str | None
    created_at: datetime


class ReviewUpdated(BaseModel):
    review_id: int
    entity_type: EntityType
    entity_id: int
    user_id: int
    rating: int
    comment: str | None
    updated_at: datetime


class ReviewDeleted(BaseModel):
    review_id: int
    entity_type: EntityType
    entity_id: int
    user_id: int
    deleted_at: datetime = Field(default_factory=utcnow)


class RatingChanged(BaseModel):
    entity_type: EntityType
    entity_id: int
    timestamp: datetime = Field(default_factory=utcnow)


ReviewEvent = ReviewCreated | ReviewUpdated | ReviewDeleted | RatingChanged
