import os
import tempfile
import time
from pathlib import Path

_tmpdir = Path(tempfile.mkdtemp(prefix="reviews_test_"))
_db_path = _tmpdir / "test.db"

os.environ.setdefault("DATABASE_URL", f"sqlite:///{_db_path.as_posix()}")
os.environ.setdefault("LOG_DIR", (_tmpdir / "logs").as_posix())
os.environ.setdefault("BROKER_URL", "memory://")
os.environ.setdefault("LOOKUP_TIMEOUT_SECONDS", "1.0")

import anyio
import pytest
from fastapi.testclient import TestClient

from reviews_api.clients.catalog import CatalogService
from reviews_api.clients.users import DirectoryUser
from reviews_api.core.deps import get_event_notifier, get_service_catalog, get_user_directory
from reviews_api.db.base import Base
from reviews_api.db.crud import ReviewStore
from reviews_api.db.session import SessionLocal, engine
from reviews_api.main import create_app
from reviews_api.services.events import EventNotifier
from reviews_api.services.resolver import EntityResolver
from reviews_api.services.reviews import ReviewManager

SERVICE_ID = 10
INACTIVE_SERVICE_ID = 11
PROVIDER_ID = 7
ALICE = 1
BOB = 2


class FakeCatalog:
    def __init__(self) -> None:
        self.services = {
            SERVICE_ID: CatalogService(id=SERVICE_ID, provider_id=PROVIDER_ID, name="Forest yoga", active=True),
            INACTIVE_SERVICE_ID: CatalogService(id=INACTIVE_SERVICE_ID, provider_id=PROVIDER_ID, name="Old spa", active=False),
        }
        self.down = False
        self.delay = 0.0

    async def get_service(self, service_id: int) -> CatalogService | None:
        if self.delay:
            await anyio.sleep(self.delay)
        if self.down:
            raise RuntimeError("catalog unavailable")
        return self.services.get(service_id)


class FakeDirectory:
    def __init__(self) -> None:
        self.users = {
            ALICE: DirectoryUser(id=ALICE, first_name="Alice", last_name="Moreno", photo_url="https://img.example/alice.png"),
            BOB: DirectoryUser(id=BOB, first_name="Bob", last_name="Quirós"),
            PROVIDER_ID: DirectoryUser(id=PROVIDER_ID, first_name="Wellness", last_name="Hub"),
        }
        self.failing: set[int] = set()
        self.calls: list[int] = []
        self.delay = 0.0

    async def get_user(self, user_id: int) -> DirectoryUser | None:
        self.calls.append(user_id)
        if self.delay:
            await anyio.sleep(self.delay)
        if user_id in self.failing:
            raise RuntimeError("directory unavailable")
        return self.users.get(user_id)


class RecordingCelery:
    """Stands in for the Celery app; keeps what would have gone to the broker."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, dict, dict]] = []
        self.down = False
        # Blocking, like kombu waiting on an unreachable broker
        self.delay = 0.0

    def send_task(self, name, args=None, kwargs=None, **options):
        if self.delay:
            time.sleep(self.delay)
        if self.down:
            raise ConnectionError("broker unreachable")
        self.sent.append((name, kwargs, options))

    @property
    def routing_keys(self) -> list[str]:
        return [options["routing_key"] for _, _, options in self.sent]


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def clean_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db(clean_db):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def store(db):
    return ReviewStore(db)


@pytest.fixture()
def catalog():
    return FakeCatalog()


@pytest.fixture()
def directory():
    return FakeDirectory()


@pytest.fixture()
def broker():
    return RecordingCelery()


@pytest.fixture()
def notifier(broker):
    return EventNotifier(broker, exchange="reviews.test")


@pytest.fixture()
def resolver(catalog, directory):
    return EntityResolver(catalog=catalog, directory=directory, timeout_seconds=0.5)


@pytest.fixture()
def manager(store, resolver, directory, notifier):
    return ReviewManager(store=store, resolver=resolver, directory=directory, notifier=notifier)


@pytest.fixture()
def client(clean_db, catalog, directory, notifier):
    app = create_app()
    app.dependency_overrides[get_service_catalog] = lambda: catalog
    app.dependency_overrides[get_user_directory] = lambda: directory
    app.dependency_overrides[get_event_notifier] = lambda: notifier
    with TestClient(app) as c:
        yield c


def user_header(user_id: int) -> dict[str, str]:
    return {"X-User-Id": str(user_id)}
