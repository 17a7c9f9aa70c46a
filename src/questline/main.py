"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from questline.config import get_settings
from questline.database import close_db, init_db
from questline.gamification.router import router as gamification_router
from questline.health.router import router as health_router
from questline.middleware import setup_middleware
from questline.redis_client import close_redis, init_redis
from questline.referrals.router import router as referrals_router
from questline.users.router import router as users_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)
    logger.info("startup_complete", environment=settings.environment, version=settings.app_version)

    yield

    await close_db()
    await close_redis()
    logger.info("shutdown_complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Questline API",
        description="XP, tiers and referral rewards for the Questline questing platform",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(users_router)
    app.include_router(gamification_router)
    app.include_router(referrals_router)

    return app


app = create_app()
