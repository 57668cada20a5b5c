"""Paged browsing of artists, albums and tracks in the Shiva REST format.

Entities are addressed by URI so that clients can follow links instead of
building paths. Results are ordered by name and paged with an optional
page size and 1-based page number.
"""

import re
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from tunevault.core.exceptions import NotFoundError
from tunevault.core.models import Album, Artist, Track

URI_PREFIX = "/api/v1/shiva"

Entity = TypeVar("Entity", Artist, Album, Track)


def page_to_limits(
    page_size: Optional[int], page: Optional[int]
) -> Tuple[Optional[int], Optional[int]]:
    """Translate a page size and 1-based page into (limit, offset).

    Paging applies only when both are positive, otherwise everything is returned.
    """
    if page_size and page and page_size > 0 and page > 0:
        return page_size, (page - 1) * page_size
    return None, None


def slugify(name: Optional[str]) -> str:
    return re.sub(r"[^a-z0-9]+", "-", (name or "").lower()).strip("-")


def artist_to_shiva(artist: Artist) -> Dict[str, Any]:
    return {
        "id": artist.id,
        "uri": f"{URI_PREFIX}/artists/{artist.id}",
        "slug": slugify(artist.name),
        "name": artist.name,
    }


def album_to_shiva(album: Album) -> Dict[str, Any]:
    return {
        "id": album.id,
        "uri": f"{URI_PREFIX}/albums/{album.id}",
        "slug": slugify(album.name),
        "name": album.name,
        "year": album.year,
        "cover": album.cover_file_id,
    }


def track_to_shiva(track: Track) -> Dict[str, Any]:
    def ref(kind: str, entity_id: Optional[int]) -> Optional[Dict[str, Any]]:
        if entity_id is None:
            return None
        return {"id": entity_id, "uri": f"{URI_PREFIX}/{kind}/{entity_id}"}

    return {
        "id": track.id,
        "uri": f"{URI_PREFIX}/tracks/{track.id}",
        "slug": slugify(track.title),
        "title": track.title,
        "ordernum": track.number,
        "length": track.length,
        "artist": ref("artists", track.artist_id),
        "album": ref("albums", track.album_id),
        "files": {track.mimetype or "application/octet-stream": track.file_id},
    }


class Browser:
    """Read-only queries behind the Shiva endpoints."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find(self, model: Type[Entity], entity_id: int, user_id: str) -> Entity:
        stmt = select(model).where(model.id == entity_id, model.user_id == user_id)
        entity = (await self.session.execute(stmt)).scalar_one_or_none()
        if entity is None:
            raise NotFoundError(f"{model.__name__} {entity_id} not found")
        return entity

    async def _all(
        self, stmt: Select, limit: Optional[int], offset: Optional[int]
    ) -> List[Any]:
        if limit is not None:
            stmt = stmt.limit(limit).offset(offset or 0)
        return list((await self.session.execute(stmt)).scalars().all())

    async def artists(
        self, user_id: str, limit: Optional[int] = None, offset: Optional[int] = None
    ) -> List[Artist]:
        stmt = (
            select(Artist)
            .where(Artist.user_id == user_id)
            .order_by(Artist.name, Artist.id)
        )
        return await self._all(stmt, limit, offset)

    async def albums(
        self,
        user_id: str,
        artist_id: Optional[int] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Album]:
        stmt = select(Album).where(Album.user_id == user_id)
        if artist_id is not None:
            stmt = stmt.where(Album.album_artist_id == artist_id)
        stmt = stmt.order_by(Album.name, Album.id)
        return await self._all(stmt, limit, offset)

    async def tracks(
        self,
        user_id: str,
        artist_id: Optional[int] = None,
        album_id: Optional[int] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Track]:
        stmt = select(Track).where(Track.user_id == user_id)
        if artist_id is not None:
            stmt = stmt.where(Track.artist_id == artist_id)
        if album_id is not None:
            # album order
            stmt = stmt.where(Track.album_id == album_id).order_by(
                Track.disk, Track.number, Track.id
            )
        else:
            stmt = stmt.order_by(Track.title, Track.id)
        return await self._all(stmt, limit, offset)

    async def artist_tree(
        self, artist: Artist, include_albums: bool, include_tracks: bool
    ) -> Dict[str, Any]:
        result = artist_to_shiva(artist)
        if include_albums:
            albums = await self.albums(artist.user_id, artist_id=artist.id)
            result["albums"] = [
                await self.album_tree(album, include_tracks) for album in albums
            ]
        return result

    async def album_tree(self, album: Album, include_tracks: bool) -> Dict[str, Any]:
        result = album_to_shiva(album)
        if include_tracks:
            tracks = await self.tracks(album.user_id, album_id=album.id)
            result["tracks"] = [track_to_shiva(t) for t in tracks]
        return result
