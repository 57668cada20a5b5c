"""Removing scanned content from a user's library.

All operations here hold the user's "scan" mutex so they never interleave
with each other, and they drop the collection validity flag on the way out.
"""

from typing import Iterable

from loguru import logger
from sqlalchemy import delete, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from tunevault.core.concurrency import Concurrency
from tunevault.core.db_cache import DbCache
from tunevault.core.models import Album, Artist, Track
from tunevault.services.collection import CACHE_KEY
from tunevault.services.tracks import TrackRepository

MUTEX_KEY = "scan"


class Maintenance:
    def __init__(self, session: AsyncSession, concurrency: Concurrency):
        self.session = session
        self.concurrency = concurrency
        self.db_cache = DbCache(session)
        self.tracks = TrackRepository(session)

    async def remove_files(self, file_ids: Iterable[int], user_id: str) -> bool:
        """Remove the tracks of the given files. Returns True if anything was removed."""
        async with self.concurrency.mutex(user_id, MUTEX_KEY):
            removed = await self.tracks.delete_by_file_ids(file_ids, user_id)
            if removed:
                await self._prune_empty(user_id)
                await self.db_cache.remove(user_id, CACHE_KEY)
                logger.info(f"Removed {removed} tracks of user {user_id}")
        return removed > 0

    async def reset_library(self, user_id: str) -> None:
        """Remove every track, album and artist of the user."""
        async with self.concurrency.mutex(user_id, MUTEX_KEY):
            await self.session.execute(delete(Track).where(Track.user_id == user_id))
            await self.session.execute(delete(Album).where(Album.user_id == user_id))
            await self.session.execute(delete(Artist).where(Artist.user_id == user_id))
            await self.session.commit()
            await self.db_cache.remove(user_id, CACHE_KEY)
            logger.info(f"Library of user {user_id} reset")

    async def _prune_empty(self, user_id: str) -> None:
        """Delete albums without tracks and then artists without albums or tracks."""
        await self.session.execute(
            delete(Album).where(
                Album.user_id == user_id,
                ~exists(select(Track.id).where(Track.album_id == Album.id).correlate(Album)),
            ).execution_options(synchronize_session=False)
        )
        await self.session.execute(
            delete(Artist).where(
                Artist.user_id == user_id,
                ~exists(select(Track.id).where(Track.artist_id == Artist.id).correlate(Artist)),
                ~exists(select(Album.id).where(Album.album_artist_id == Artist.id).correlate(Artist)),
            ).execution_options(synchronize_session=False)
        )
        await self.session.commit()
