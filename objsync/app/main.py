# objsync/app/main.py
"""
Application factory.

The storage handle is built here (or injected) and owned by the lifespan:
open on startup, close on shutdown. Nothing is created at import time, so
run the server with ``uvicorn --factory objsync.app.main:create_app`` or
``python -m objsync``.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.cors import CORSMiddleware

from objsync.app.api.errors import (
    database_exception_handler,
    unknown_owner_handler,
    validation_exception_handler,
)
from objsync.app.api.router import api_router
from objsync.app.core.clock import Clock
from objsync.app.core.config import Settings, get_settings
from objsync.app.db.store import ObjectStore, UnknownOwnerError
from objsync.app.security.gateway import AuthGateway
from objsync.app.security.rate_limiter import RateLimiter
from objsync.app.services.token_reaper import TokenReaper

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ObjectStore] = None,
    clock: Optional[Clock] = None,
) -> FastAPI:
    settings = settings or get_settings()
    if store is None:
        store = ObjectStore.from_settings(settings, clock=clock)
    clock = clock or store.clock

    gateway = AuthGateway.from_settings(store, settings, clock=clock)
    reaper = TokenReaper(store, settings.TOKEN_REAPER_INTERVAL_SECONDS, clock=clock)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await store.open()
        if settings.TOKEN_REAPER_ENABLED:
            reaper.start()
        logger.info(f"{settings.PROJECT_NAME} started ({settings.ENVIRONMENT})")
        yield
        await reaper.stop()
        await store.close()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.PROJECT_VERSION,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.store = store
    app.state.gateway = gateway
    app.state.reaper = reaper

    if settings.RATE_LIMIT_ENABLED:
        limiter = RateLimiter.from_settings(settings, clock=clock)
        app.state.rate_limiter = limiter

        @app.middleware("http")
        async def rate_limit(request: Request, call_next):
            client = request.client.host if request.client else "unknown"
            retry_after = limiter.check(client)
            if retry_after is not None:
                return JSONResponse(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    content={"detail": "Rate limit exceeded"},
                    headers={"Retry-After": str(retry_after)},
                )
            return await call_next(request)

    if settings.BACKEND_CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.BACKEND_CORS_ORIGINS,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(UnknownOwnerError, unknown_owner_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)

    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.get("/")
    def root():
        return {"message": f"Welcome to {settings.PROJECT_NAME} sync API"}

    return app
