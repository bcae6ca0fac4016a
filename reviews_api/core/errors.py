from __future__ import annotations

from fastapi import status


class ReviewServiceError(Exception):
    """Base for failures reported to the caller as-is."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    title: str = "Bad Request"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ReviewValidationError(ReviewServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    title = "Validation Error"


class EntityNotFoundError(ReviewServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    title = "Not Found"


class ReviewNotFoundError(ReviewServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    title = "Not Found"


class DuplicateReviewError(ReviewServiceError):
    status_code = status.HTTP_409_CONFLICT
    title = "Conflict"


class UnauthorizedAccessError(ReviewServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    title = "Forbidden"
