"""Database-backed cache for small per-user values.

Unlike the blob stores, this cache is reachable for any user from any code
path (API requests, the worker CLI, background jobs), so it is the place for
flags that other users' actions must be able to clear. Each mutating call
commits on its own.
"""

from typing import Optional

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tunevault.core.exceptions import UniqueConstraintViolation
from tunevault.core.models import CacheEntry


class DbCache:
    """Key/value rows keyed by (user_id, key)."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, user_id: str, key: str) -> Optional[str]:
        stmt = select(CacheEntry.data).where(
            CacheEntry.user_id == user_id, CacheEntry.key == key
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def add(self, user_id: str, key: str, data: Optional[str]) -> int:
        """Insert a new entry and return its ID.

        Raises:
            UniqueConstraintViolation: An entry with the same user and key exists.
        """
        entry = CacheEntry(user_id=user_id, key=key, data=data)
        self.session.add(entry)
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise UniqueConstraintViolation(
                f"Cache entry {key!r} already exists for user {user_id}"
            ) from e
        return entry.id

    async def remove(self, user_id: Optional[str] = None, key: Optional[str] = None) -> None:
        """Remove matching entries; None acts as a wildcard."""
        stmt = delete(CacheEntry)
        if user_id is not None:
            stmt = stmt.where(CacheEntry.user_id == user_id)
        if key is not None:
            stmt = stmt.where(CacheEntry.key == key)
        result = await self.session.execute(stmt)
        await self.session.commit()
        if result.rowcount:
            logger.debug(
                f"Removed {result.rowcount} cache entries (user={user_id}, key={key})"
            )

    async def forced_get_id(self, user_id: str, key: str) -> int:
        """Return the row ID of an entry, creating an empty entry if needed.

        The ID is stable for as long as the entry exists, which makes it
        usable for deriving numeric keys from strings.
        """
        stmt = select(CacheEntry.id).where(
            CacheEntry.user_id == user_id, CacheEntry.key == key
        )
        entry_id = (await self.session.execute(stmt)).scalar_one_or_none()
        if entry_id is not None:
            return entry_id
        try:
            return await self.add(user_id, key, None)
        except UniqueConstraintViolation:
            return (await self.session.execute(stmt)).scalar_one()
