import os

# must be set before taskboard.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["PASSWORD_HASH_ITERATIONS"] = "1000"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["REALTIME_BACKEND"] = "local"
os.environ["APP_ENV"] = "test"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import taskboard.models  # noqa: F401
from taskboard.db import Base, SessionLocal, engine, get_db
from taskboard.main import create_app
from taskboard.realtime.events import LocalEventBus
from taskboard.storage.blobs import MemoryBlobStore
from tests.helpers import register, uniq_email

@pytest.fixture()
def db_session() -> Session:
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture()
def blob_store() -> MemoryBlobStore:
    return MemoryBlobStore()

@pytest.fixture()
def bus() -> LocalEventBus:
    return LocalEventBus()

@pytest.fixture()
def app(db_session: Session, blob_store: MemoryBlobStore, bus: LocalEventBus):
    app = create_app(blob_store=blob_store, event_bus=bus, create_schema=False)

    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    return app

@pytest.fixture()
def client(app) -> TestClient:
    # context manager runs the lifespan, which loads/seeds the task store
    with TestClient(app) as c:
        yield c

@pytest.fixture()
def login(client):
    def _login(email: str, *, role: str = "user", name: str = "Test User") -> str:
        return register(client, email, role=role, name=name)

    return _login

@pytest.fixture()
def user_jwt(client) -> str:
    return register(client, "user@example.com", role="user", name="Regular User")

@pytest.fixture()
def guest_jwt(client) -> str:
    return register(client, uniq_email("guest"), role="guest", name="Guest User")
