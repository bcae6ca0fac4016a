from __future__ import annotations

import aiohttp
from fastapi import status


def open_session(*, limit: int = 20) -> aiohttp.ClientSession:
    """Session shared by the lookup clients of one request."""
    connector = aiohttp.TCPConnector(limit=limit)
    return aiohttp.ClientSession(connector=connector, headers={"Accept": "application/json"})


async def get_json(session: aiohttp.ClientSession, url: str, *, timeout_seconds: float) -> dict | None:
    """GET a JSON document; None on 404, ClientResponseError on other failures."""
    timeout = aiohttp.ClientTimeout(total=timeout_seconds)
    async with session.get(url, timeout=timeout) as response:
        if response.status == status.HTTP_404_NOT_FOUND:
            return None
        response.raise_for_status()
        return await response.json()
