from __future__ import annotations

from collections.abc import AsyncIterator
from functools import lru_cache

import aiohttp
from fastapi import Depends, Header
from sqlalchemy.orm import Session

from reviews_api.clients.catalog import ServiceCatalogClient
from reviews_api.clients.http import open_session
from reviews_api.clients.users import UserDirectoryClient
from reviews_api.core.celery_app import celery_app
from reviews_api.core.config import settings
from reviews_api.db.crud import ReviewStore
from reviews_api.db.session import get_db
from reviews_api.services.events import EventNotifier
from reviews_api.services.resolver import EntityResolver
from reviews_api.services.reviews import ReviewManager


def get_requester_id(x_user_id: int = Header(description="Id of the calling user, trusted as-is")) -> int:
    return x_user_id


async def get_http_session() -> AsyncIterator[aiohttp.ClientSession]:
    async with open_session() as session:
        yield session


def get_service_catalog(session: aiohttp.ClientSession = Depends(get_http_session)) -> ServiceCatalogClient:
    return ServiceCatalogClient(
        settings.service_catalog_url, session=session, timeout_seconds=settings.lookup_timeout_seconds
    )


def get_user_directory(session: aiohttp.ClientSession = Depends(get_http_session)) -> UserDirectoryClient:
    return UserDirectoryClient(
        settings.user_directory_url, session=session, timeout_seconds=settings.lookup_timeout_seconds
    )


@lru_cache
def get_event_notifier() -> EventNotifier:
    return EventNotifier(celery_app, exchange=settings.events_exchange)


def get_entity_resolver(
    catalog: ServiceCatalogClient = Depends(get_service_catalog),
    directory: UserDirectoryClient = Depends(get_user_directory),
) -> EntityResolver:
    return EntityResolver(catalog=catalog, directory=directory, timeout_seconds=settings.lookup_timeout_seconds)


def get_review_manager(
    db: Session = Depends(get_db),
    resolver: EntityResolver = Depends(get_entity_resolver),
    directory: UserDirectoryClient = Depends(get_user_directory),
    notifier: EventNotifier = Depends(get_event_notifier),
) -> ReviewManager:
    return ReviewManager(store=ReviewStore(db), resolver=resolver, directory=directory, notifier=notifier)
