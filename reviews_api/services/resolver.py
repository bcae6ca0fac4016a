from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

import anyio

from reviews_api.clients.catalog import ServiceCatalogClient
from reviews_api.clients.users import UserDirectoryClient
from reviews_api.models.enums import EntityType
from reviews_api.schemas.reviews import ReviewableDescriptor

logger = logging.getLogger(__name__)

Lookup = Callable[[int], Awaitable[ReviewableDescriptor | None]]


class EntityResolver:
    """Answers "can entity (type, id) be reviewed?" across the remote catalogs.

    Each entity type has one lookup that projects its remote record onto a
    ReviewableDescriptor. A missing entity, an unsupported type, a remote error
    and a timeout all come back as None.
    """

    def __init__(
        self,
        *,
        catalog: ServiceCatalogClient,
        directory: UserDirectoryClient,
        timeout_seconds: float,
    ) -> None:
        self.catalog = catalog
        self.directory = directory
        self.timeout_seconds = timeout_seconds
        self._lookups: dict[EntityType, Lookup] = {
            EntityType.service: self._lookup_service,
            EntityType.provider: self._lookup_provider,
        }

    async def resolve(self, entity_type: EntityType | str, entity_id: int) -> ReviewableDescriptor | None:
        kind = EntityType.parse(entity_type)
        lookup = self._lookups.get(kind) if kind else None
        if lookup is None:
            logger.warning("Unsupported entity type: %r", entity_type)
            return None

        try:
            with anyio.fail_after(self.timeout_seconds):
                return await lookup(entity_id)
        except TimeoutError:
            logger.warning("Lookup of %s %s timed out after %ss", kind.value, entity_id, self.timeout_seconds)
        except Exception as e:
            logger.error("Error fetching %s with id %s: %s", kind.value, entity_id, e)
        return None

    async def _lookup_service(self, entity_id: int) -> ReviewableDescriptor | None:
        service = await self.catalog.get_service(entity_id)
        if service is None or not service.active:
            return None
        return ReviewableDescriptor(
            id=service.id,
            type=EntityType.service,
            display_name=service.name,
            owner_id=service.provider_id,
        )

    async def _lookup_provider(self, entity_id: int) -> ReviewableDescriptor | None:
        user = await self.directory.get_user(entity_id)
        if user is None:
            return None
        return ReviewableDescriptor(
            id=user.id,
            type=EntityType.provider,
            display_name=user.full_name,
            owner_id=user.id,
        )
