from __future__ import annotations

import logging

import aiohttp
from pydantic import BaseModel

from reviews_api.clients.http import get_json

logger = logging.getLogger(__name__)


class DirectoryUser(BaseModel):
    id: int
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    photo_url: str | None = None

    @property
    def full_name(self) -> str:
        if not self.first_name:
            return ""
        return " ".join(p.strip() for p in (self.first_name, self.last_name) if p and p.strip())


class UserDirectoryClient:
    """Profiles from the user directory: GET {base_url}/users/{id}.

    Providers are users too, so this also backs provider lookups.
    """

    def __init__(self, base_url: str, *, session: aiohttp.ClientSession, timeout_seconds: float = 3.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session
        self.timeout_seconds = timeout_seconds

    async def get_user(self, user_id: int) -> DirectoryUser | None:
        url = f"{self.base_url}/users/{user_id}"
        data = await get_json(self.session, url, timeout_seconds=self.timeout_seconds)
        if data is None:
            logger.info("User %s not found in directory", user_id)
            return None
        return DirectoryUser.model_validate(data)
