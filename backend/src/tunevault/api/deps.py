from typing import AsyncGenerator

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from tunevault.core.blob_store import get_blob_store
from tunevault.core.concurrency import Concurrency
from tunevault.core.db import AsyncSessionLocal
from tunevault.core.db_cache import DbCache
from tunevault.services.collection import CollectionService
from tunevault.services.library import Library
from tunevault.services.maintenance import Maintenance
from tunevault.services.scrobbling import AggregateScrobbler, PlayCountScrobbler


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async DB session."""
    async with AsyncSessionLocal() as session:
        yield session


async def get_current_user(x_user_id: str | None = Header(default=None)) -> str:
    """Identify the user from the header set by the host's auth proxy."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return x_user_id


def get_collection_service(
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CollectionService:
    return CollectionService(Library(db), get_blob_store(user_id), DbCache(db))


def get_scrobbler(db: AsyncSession = Depends(get_db)) -> AggregateScrobbler:
    return AggregateScrobbler([PlayCountScrobbler(db)])


def get_maintenance(db: AsyncSession = Depends(get_db)) -> Maintenance:
    return Maintenance(db, Concurrency(DbCache(db)))
