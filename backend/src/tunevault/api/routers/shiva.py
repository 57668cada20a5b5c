"""Shiva REST API: browsing the library entity by entity."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from tunevault.api.deps import get_current_user, get_db
from tunevault.core.exceptions import NotFoundError
from tunevault.core.models import Album, Artist, Track
from tunevault.services.browse import (
    Browser,
    album_to_shiva,
    artist_to_shiva,
    page_to_limits,
    track_to_shiva,
)

router = APIRouter()


async def _find(browser: Browser, model, entity_id: int, user_id: str):
    try:
        return await browser.find(model, entity_id, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/artists")
async def artists(
    fulltree: bool = False,
    albums: bool = False,
    page_size: Optional[int] = None,
    page: Optional[int] = None,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    browser = Browser(db)
    limit, offset = page_to_limits(page_size, page)
    result = await browser.artists(user_id, limit, offset)
    return [await browser.artist_tree(a, albums or fulltree, fulltree) for a in result]


@router.get("/artists/{artist_id}")
async def artist(
    artist_id: int,
    fulltree: bool = False,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    browser = Browser(db)
    entity = await _find(browser, Artist, artist_id, user_id)
    return await browser.artist_tree(entity, fulltree, fulltree)


@router.get("/albums")
async def albums(
    artist: Optional[int] = None,
    fulltree: bool = False,
    page_size: Optional[int] = None,
    page: Optional[int] = None,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    browser = Browser(db)
    limit, offset = page_to_limits(page_size, page)
    result = await browser.albums(user_id, artist, limit, offset)
    return [await browser.album_tree(a, fulltree) for a in result]


@router.get("/albums/{album_id}")
async def album(
    album_id: int,
    fulltree: bool = False,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    browser = Browser(db)
    entity = await _find(browser, Album, album_id, user_id)
    return await browser.album_tree(entity, fulltree)


@router.get("/tracks")
async def tracks(
    artist: Optional[int] = None,
    album: Optional[int] = None,
    fulltree: bool = False,
    page_size: Optional[int] = None,
    page: Optional[int] = None,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    browser = Browser(db)
    limit, offset = page_to_limits(page_size, page)
    result = []
    for track in await browser.tracks(user_id, artist, album, limit, offset):
        entry = track_to_shiva(track)
        if fulltree:
            # embed the whole artist and album instead of references
            if track.artist_id is not None:
                entry["artist"] = artist_to_shiva(
                    await browser.find(Artist, track.artist_id, user_id)
                )
            if track.album_id is not None:
                entry["album"] = album_to_shiva(
                    await browser.find(Album, track.album_id, user_id)
                )
        result.append(entry)
    return result


@router.get("/tracks/{track_id}")
async def track(
    track_id: int,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return track_to_shiva(await _find(Browser(db), Track, track_id, user_id))
