from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from reviews_api.models.enums import EntityType

MAX_COMMENT_LENGTH = 1000


def _strip_comment(value):
    # Trimmed before the length check, same as ReviewManager
    if isinstance(value, str):
        return value.strip() or None
    return value


class ReviewCreate(BaseModel):
    # Kept as a plain string: an unknown kind is reported as "entity not found".
    entity_type: str = Field(min_length=1, max_length=20)
    entity_id: int
    rating: int = Field(ge=1, le=5)
    comment: str | None = Field(default=None, max_length=MAX_COMMENT_LENGTH)

    @field_validator("comment", mode="before")
    @classmethod
    def trim_comment(cls, value):
        return _strip_comment(value)


class ReviewUpdate(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: str | None = Field(default=None, max_length=MAX_COMMENT_LENGTH)

    @field_validator("comment", mode="before")
    @classmethod
    def trim_comment(cls, value):
        return _strip_comment(value)


class ReviewResponse(BaseModel):
    id: int
    entity_type: EntityType
    entity_id: int
    user_id: int
    user_name: str
    user_photo: str | None
    rating: int
    comment: str | None
    created_at: datetime
    updated_at: datetime


class ReviewPage(BaseModel):
    items: list[ReviewResponse]
    total: int
    page: int
    size: int
    total_pages: int


class RatingSummary(BaseModel):
    entity_id: int
    entity_type: EntityType
    average_rating: float
    total_reviews: int
    distribution: dict[int, int]


class ReviewableDescriptor(BaseModel):
    """What a lookup adapter reports about a reviewable entity."""

    id: int
    type: EntityType
    display_name: str
    owner_id: int | None
