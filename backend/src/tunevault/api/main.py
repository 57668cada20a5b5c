"""FastAPI application entry point for the tunevault API.

The API serves the music web UI of the hosting platform:
- The whole library as one cacheable JSON document
- The folder tree of the library
- Play count scrobbling
- Library maintenance (forgetting removed files, full reset)
- Library settings (music folder, ignored articles)
- Entity browsing in the Shiva REST format
- Client log relay and system health

The user is identified by the X-User-Id header set by the host's
authentication proxy.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from tunevault.api.middleware import RequestIDMiddleware
from tunevault.api.routers import log, music, settings, shiva, system
from tunevault.core.db import init_db
from tunevault.core.logger import setup_logging

# Initialize Logging
setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    await init_db()
    yield


app = FastAPI(
    title="tunevault API",
    version="0.1.0",
    description="Music library server for a self-hosted file cloud",
    lifespan=lifespan,
)

app.add_middleware(RequestIDMiddleware)

# Include Routers
app.include_router(system.router, prefix="/api/v1/system", tags=["System"])
app.include_router(music.router, prefix="/api/v1/music", tags=["Music"])
app.include_router(log.router, prefix="/api/v1/log", tags=["Log"])
app.include_router(settings.router, prefix="/api/v1/settings", tags=["Settings"])
app.include_router(shiva.router, prefix="/api/v1/shiva", tags=["Shiva"])


@app.get("/")
async def root():
    return {"message": "tunevault API is running"}
