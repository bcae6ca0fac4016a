from __future__ import annotations

import logging
from typing import Literal

from fastapi import APIRouter, Depends, Query, Response, status

from reviews_api.core.config import settings
from reviews_api.core.deps import get_requester_id, get_review_manager
from reviews_api.models.enums import EntityType
from reviews_api.schemas.reviews import RatingSummary, ReviewCreate, ReviewPage, ReviewResponse, ReviewUpdate
from reviews_api.services.reviews import ReviewManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reviews", tags=["reviews"])

SortKey = Literal["created_at", "updated_at", "rating"]


@router.post("", response_model=ReviewResponse, status_code=201)
async def create_review(
    payload: ReviewCreate,
    requester_id: int = Depends(get_requester_id),
    manager: ReviewManager = Depends(get_review_manager),
) -> ReviewResponse:
    logger.info("Create review: user=%s %s=%s", requester_id, payload.entity_type, payload.entity_id)
    return await manager.create_review(
        entity_type=payload.entity_type,
        entity_id=payload.entity_id,
        rating=payload.rating,
        comment=payload.comment,
        requester_id=requester_id,
    )


# Declared before the /{entity_type}/{entity_id} routes so "user" isn't read as an entity type.
@router.get("/user/{user_id}", response_model=ReviewPage)
async def list_user_reviews(
    user_id: int,
    page: int = Query(default=0, ge=0),
    size: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    manager: ReviewManager = Depends(get_review_manager),
) -> ReviewPage:
    return await manager.list_user_reviews(user_id, page=page, size=size)


@router.get("/{review_id}", response_model=ReviewResponse)
async def get_review(review_id: int, manager: ReviewManager = Depends(get_review_manager)) -> ReviewResponse:
    return await manager.get_review(review_id)


@router.put("/{review_id}", response_model=ReviewResponse)
async def update_review(
    review_id: int,
    payload: ReviewUpdate,
    requester_id: int = Depends(get_requester_id),
    manager: ReviewManager = Depends(get_review_manager),
) -> ReviewResponse:
    return await manager.update_review(
        review_id=review_id,
        rating=payload.rating,
        comment=payload.comment,
        requester_id=requester_id,
    )


@router.delete("/{review_id}", status_code=204)
async def delete_review(
    review_id: int,
    requester_id: int = Depends(get_requester_id),
    manager: ReviewManager = Depends(get_review_manager),
) -> Response:
    await manager.delete_review(review_id=review_id, requester_id=requester_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{entity_type}/{entity_id}", response_model=ReviewPage)
async def list_reviews(
    entity_type: EntityType,
    entity_id: int,
    page: int = Query(default=0, ge=0),
    size: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    sort_by: SortKey = Query(default="created_at"),
    manager: ReviewManager = Depends(get_review_manager),
) -> ReviewPage:
    return await manager.list_reviews(entity_type, entity_id, page=page, size=size, sort_key=sort_by)


@router.get("/{entity_type}/{entity_id}/rating", response_model=RatingSummary)
def rating_summary(
    entity_type: EntityType,
    entity_id: int,
    manager: ReviewManager = Depends(get_review_manager),
) -> RatingSummary:
    return manager.rating_summary(entity_type, entity_id)


@router.get("/{entity_type}/{entity_id}/recent", response_model=list[ReviewResponse])
async def recent_reviews(
    entity_type: EntityType,
    entity_id: int,
    limit: int = Query(default=5, ge=1, le=settings.max_recent_limit),
    manager: ReviewManager = Depends(get_review_manager),
) -> list[ReviewResponse]:
    return await manager.recent_reviews(entity_type, entity_id, limit=limit)
