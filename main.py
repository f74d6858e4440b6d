import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from api.api_router import api_router
from api.auth.config import limiter
from config import Settings, load_settings
from models import create_client, get_database, init_models
from models.enums import StorageBackend
from services.dispatcher import ReminderDispatcher
from services.errors import HabitTrackerError
from services.matcher import ReminderMatcher
from services.notifier import Notifier, build_notifier
from services.scheduler import ReminderScheduler
from stores import Stores, build_stores
from utils.dates import local_now
from utils.logger import setup_logging

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    stores: Optional[Stores] = None,
    notifier: Optional[Notifier] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> FastAPI:
    settings = settings or load_settings()
    setup_logging(settings.log_level)

    tz = settings.tzinfo()
    clock = clock or (lambda: local_now(tz))
    stores = stores or build_stores(settings.storage_backend)
    notifier = notifier or build_notifier(settings)

    matcher = ReminderMatcher(stores.habits, stores.ledger)
    dispatcher = ReminderDispatcher(
        matcher, stores.subscriptions, notifier, send_timeout=settings.push_timeout_seconds
    )
    scheduler = ReminderScheduler(dispatcher, tz=tz, clock=clock)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = None
        if settings.storage_backend == StorageBackend.mongo.value:
            client = create_client(settings)
            await init_models(get_database(client, settings))
        if settings.reminders_enabled:
            scheduler.start()
        try:
            yield
        finally:
            scheduler.shutdown()
            if client is not None:
                client.close()

    app = FastAPI(
        lifespan=lifespan,
        title="habit_tracker_backend",
    )
    app.state.settings = settings
    app.state.stores = stores
    app.state.clock = clock
    app.state.dispatcher = dispatcher
    app.state.scheduler = scheduler
    app.state.limiter = limiter
    limiter.enabled = settings.rate_limit_enabled

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(HabitTrackerError)
    async def habit_tracker_error(request: Request, exc: HabitTrackerError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_exceeded(request: Request, exc: RateLimitExceeded):
        logger.warning("Rate limit %s exceeded on %s", exc.detail, request.url.path)
        return JSONResponse(
            status_code=429,
            content={"detail": "Too many authentication attempts, please try again later."},
        )

    app.include_router(api_router)

    @app.get("/healthcheck", status_code=200)
    async def healthcheck():
        return {"status": "ok", "reminders": scheduler.running}

    return app


app = create_app()
