from reviews_api.models.enums import EntityType
from reviews_api.models.reviews import Review

__all__ = ["EntityType", "Review"]
