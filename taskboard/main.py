import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from taskboard.auth.identity_cache import IdentityCache
from taskboard.config import settings
from taskboard.db import init_db
from taskboard.logging_setup import setup_logging
from taskboard.middleware import RouteProtectionMiddleware
from taskboard.realtime.events import LocalEventBus, RedisEventBus, build_event_bus
from taskboard.realtime.notifications import NotificationCenter
from taskboard.realtime.presence import PresenceTracker
from taskboard.routes.auth import router as auth_router
from taskboard.routes.dashboard import router as dashboard_router
from taskboard.routes.health import router as health_router
from taskboard.routes.profile import router as profile_router
from taskboard.routes.tasks import router as tasks_router
from taskboard.storage.blobs import BlobStore, build_blob_store
from taskboard.tasks.store import TaskStore

logger = logging.getLogger(__name__)

def create_app(
    *,
    blob_store: BlobStore | None = None,
    event_bus: LocalEventBus | None = None,
    create_schema: bool = True,
) -> FastAPI:
    """
    Composition root: one blob store, one event bus, one TaskStore per app.
    Tests pass their own blob store / bus.
    """
    blobs = blob_store if blob_store is not None else build_blob_store(settings.storage_backend)
    bus = event_bus if event_bus is not None else build_event_bus(settings.realtime_backend, settings.realtime_channel)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if create_schema:
            init_db()
        if isinstance(bus, RedisEventBus):
            bus.start()
        app.state.task_store.initialize()
        yield
        if isinstance(bus, RedisEventBus):
            bus.stop()
        app.state.notifications.close()

    app = FastAPI(title="taskboard", version="0.1.0", lifespan=lifespan)

    app.state.blob_store = blobs
    app.state.event_bus = bus
    app.state.task_store = TaskStore(blobs, key=settings.tasks_storage_key, events=bus)
    app.state.identity_cache = IdentityCache(blobs, key=settings.identity_storage_key)
    app.state.notifications = NotificationCenter(bus, limit=settings.notifications_limit)
    app.state.presence = PresenceTracker(bus)

    app.add_middleware(RouteProtectionMiddleware)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(profile_router)
    app.include_router(dashboard_router)
    app.include_router(tasks_router)
    return app

app = create_app()

def run() -> None:
    import uvicorn

    setup_logging(level=settings.log_level, log_dir=settings.log_dir)
    logger.info(
        "Starting taskboard env=%s storage=%s realtime=%s",
        settings.app_env,
        settings.storage_backend,
        settings.realtime_backend,
    )
    uvicorn.run(app, host=settings.app_host, port=settings.app_port, log_config=None)

if __name__ == "__main__":
    run()
