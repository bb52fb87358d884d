"""FastAPI application factory."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from dare2earn.auth.router import router as auth_router
from dare2earn.config import get_settings
from dare2earn.dares.router import router as dares_router
from dare2earn.database import close_db, get_session, init_db
from dare2earn.health.router import router as health_router
from dare2earn.middleware import setup_middleware
from dare2earn.redis_client import close_redis, init_redis
from dare2earn.users.router import router as users_router
from dare2earn.workers.session_sweeper import SessionSweeper


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url, max_connections=settings.redis_max_connections)

    sweeper = SessionSweeper(get_session, interval_seconds=settings.session_sweep_interval_seconds)
    sweeper_task = asyncio.create_task(sweeper.start())

    yield

    await sweeper.stop()
    sweeper_task.cancel()
    try:
        await sweeper_task
    except asyncio.CancelledError:
        pass

    await close_redis()
    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Dare2Earn API",
        description="Backend API for Dare2Earn: paid challenges with submissions and peer voting",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(dares_router)
    app.include_router(users_router)

    return app


app = create_app()
