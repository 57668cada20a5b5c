"""Building and caching the monolithic JSON describing a whole music library.

Two caches are used together. The JSON itself goes to the user's blob store,
because with tens of thousands of tracks it may be well over 10 MB, more than
a database row should hold. An md5 hash of the JSON goes to the database
cache and acts as the flag telling that the stored JSON is valid. The blob
store is only reachable for the user in question, but the flag can be
cleared from anywhere (file changes by other users, the worker CLI), which
invalidates the JSON without touching it.

The hash is written before the JSON. Two requests building the collection at
the same time both try to insert the hash; the loser's insert fails on the
unique key and its JSON is not stored, but it is still served to its caller.
The loser does not check that its JSON equals the winner's, so a library
change in between can leave the caller with data differing from the cache.
"""

import asyncio
import hashlib
import json
from typing import Optional

from loguru import logger

from tunevault.core.blob_store import BlobStore
from tunevault.core.config import settings
from tunevault.core.db_cache import DbCache
from tunevault.core.exceptions import UniqueConstraintViolation
from tunevault.services.library import Library

CACHE_KEY = "collection"


class CollectionService:
    def __init__(self, library: Library, blob_store: BlobStore, db_cache: DbCache):
        self.library = library
        self.blob_store = blob_store
        self.db_cache = db_cache

    async def get_json(self, user_id: str) -> str:
        """Return the collection JSON of the user, building it on cache miss."""
        collection_json = await self._get_cached_json(user_id)

        if collection_json is None:
            collection = await self.library.to_collection(user_id)
            collection_json = json.dumps(
                collection, ensure_ascii=False, separators=(",", ":")
            )
            try:
                await self._add_json_to_cache(collection_json, user_id)
            except UniqueConstraintViolation:
                logger.warning(
                    f"Race condition: collection.json for user {user_id} cached twice, ignoring latter."
                )

        return collection_json

    async def get_cached_json_hash(self, user_id: str) -> Optional[str]:
        return await self.db_cache.get(user_id, CACHE_KEY)

    async def invalidate(self, user_id: str) -> None:
        """Drop the validity flag so that the next request rebuilds the JSON."""
        await self.db_cache.remove(user_id, CACHE_KEY)

    async def _get_cached_json(self, user_id: str) -> Optional[str]:
        collection_json = None
        json_hash = await self.db_cache.get(user_id, CACHE_KEY)
        if json_hash is not None:
            # the blob may be tens of megabytes, keep file I/O off the event loop
            collection_json = await asyncio.get_running_loop().run_in_executor(
                None, self.blob_store.get, settings.COLLECTION_CACHE_KEY
            )
            if collection_json is None:
                logger.debug(
                    f"Inconsistent collection state for user {user_id}: "
                    "Hash found from DB-backed cache but data not found from the "
                    "blob store. Removing also the hash."
                )
                await self.db_cache.remove(user_id, CACHE_KEY)
        return collection_json

    async def _add_json_to_cache(self, collection_json: str, user_id: str) -> None:
        json_hash = hashlib.md5(collection_json.encode("utf-8")).hexdigest()
        await self.db_cache.add(user_id, CACHE_KEY, json_hash)
        await asyncio.get_running_loop().run_in_executor(
            None,
            self.blob_store.set,
            settings.COLLECTION_CACHE_KEY,
            collection_json,
            settings.COLLECTION_CACHE_TTL,
        )
