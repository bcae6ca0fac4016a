from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from reviews_api.models.reviews import utcnow


class ErrorResponse(BaseModel):
    status: int
    error: str
    message: str
    timestamp: datetime = Field(default_factory=utcnow)
    validation_errors: dict[str, str] | None = None
