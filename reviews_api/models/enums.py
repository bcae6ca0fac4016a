from __future__ import annotations

from enum import Enum


class EntityType(str, Enum):
    service = "service"
    provider = "provider"

    @classmethod
    def parse(cls, raw: EntityType | str | None) -> EntityType | None:
        """Case-insensitive lookup by value; None for anything unsupported."""
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            return None
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return None
