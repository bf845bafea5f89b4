# src/travel_threads/main.py
"""Main entry point for the Travel Threads API."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from travel_threads import __version__
from travel_threads.api.v1 import (
    admin_router,
    auth_router,
    events_router,
    feed_router,
    media_router,
    messages_router,
    notifications_router,
    posts_router,
    search_router,
    users_router,
)
from travel_threads.api.v1.dependencies import to_http_exception
from travel_threads.core.settings import settings
from travel_threads.errors import TravelThreadsError
from travel_threads.services.context import ServiceContext
from travel_threads.services.identity import LocalIdentityProvider
from travel_threads.services.media import create_storage
from travel_threads.store import create_store

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Travel Threads API",
    description="Travel-focused social network: posts, events, messaging and moderation",
    version=__version__,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(posts_router, prefix="/api/v1")
app.include_router(feed_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")
app.include_router(events_router, prefix="/api/v1")
app.include_router(messages_router, prefix="/api/v1")
app.include_router(notifications_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")
app.include_router(search_router, prefix="/api/v1")
app.include_router(media_router, prefix="/api/v1")


@app.exception_handler(TravelThreadsError)
async def travel_threads_error_handler(request: Request, exc: TravelThreadsError) -> JSONResponse:
    """Render service errors as HTTP errors."""
    http_exc = to_http_exception(exc)
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


@app.on_event("startup")
async def on_startup() -> None:
    logging.basicConfig(level=settings.log_level.upper())
    store = create_store(settings)
    if settings.store_backend == "sql":
        from travel_threads.db.session import create_tables

        await create_tables()
    app.state.context = ServiceContext(
        store=store,
        settings=settings,
        storage=create_storage(settings),
        identity=LocalIdentityProvider(store, settings),
    )
    logger.info(
        "Started with %s store and %s media storage",
        settings.store_backend,
        settings.storage_backend,
    )


@app.on_event("shutdown")
async def on_shutdown() -> None:
    ctx: ServiceContext | None = getattr(app.state, "context", None)
    if ctx is not None:
        await ctx.store.close()
    if settings.store_backend == "sql":
        from travel_threads.db.session import engine

        await engine.dispose()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "Travel Threads API",
        "version": __version__,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("travel_threads.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
