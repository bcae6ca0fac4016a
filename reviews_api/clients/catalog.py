from __future__ import annotations

import logging

import aiohttp
from pydantic import BaseModel

from reviews_api.clients.http import get_json

logger = logging.getLogger(__name__)


class CatalogService(BaseModel):
    id: int
    provider_id: int | None = None
    name: str = ""
    active: bool = True


class ServiceCatalogClient:
    """Read access to the service catalog: GET {base_url}/api/services/{id}."""

    def __init__(self, base_url: str, *, session: aiohttp.ClientSession, timeout_seconds: float = 3.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session
        self.timeout_seconds = timeout_seconds

    async def get_service(self, service_id: int) -> CatalogService | None:
        url = f"{self.base_url}/api/services/{service_id}"
        data = await get_json(self.session, url, timeout_seconds=self.timeout_seconds)
        if data is None:
            logger.info("Service %s not found in catalog", service_id)
            return None
        return CatalogService.model_validate(data)
