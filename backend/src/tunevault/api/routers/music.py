"""Endpoints backing the music web UI: collection, folders, playback."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from tunevault.api.deps import (
    get_collection_service,
    get_current_user,
    get_db,
    get_maintenance,
    get_scrobbler,
)
from tunevault.api.schemas import (
    FolderEntry,
    PrepareCollectionResponse,
    RemoveFilesRequest,
    RemoveFilesResponse,
    ScanStateResponse,
    SuccessResponse,
    TrackResponse,
)
from tunevault.core.config import settings
from tunevault.core.exceptions import NotFoundError
from tunevault.services.collection import CollectionService
from tunevault.services.folders import FolderReconciler, UserFolder
from tunevault.services.library import track_to_collection
from tunevault.services.library_settings import LibrarySettings
from tunevault.services.maintenance import Maintenance
from tunevault.services.scrobbling import AggregateScrobbler
from tunevault.services.tracks import TrackRepository

router = APIRouter()


@router.get("/prepare_collection", response_model=PrepareCollectionResponse)
async def prepare_collection(
    user_id: str = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
    db: AsyncSession = Depends(get_db),
):
    """Make sure the collection is cached and return its hash.

    The client uses the hash as a query parameter of the collection request,
    which lets the browser cache the large response.
    """
    json_hash = await service.get_cached_json_hash(user_id)
    if json_hash is None:
        # build the collection but ignore the data for now
        await service.get_json(user_id)
        json_hash = await service.get_cached_json_hash(user_id)

    return PrepareCollectionResponse(
        hash=json_hash,
        ignored_articles=await LibrarySettings(db).get_ignored_articles(user_id),
    )


@router.get("/collection")
async def collection(
    hash_: Optional[str] = Query(None, alias="hash"),
    user_id: str = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
):
    """Return the whole library as one JSON document."""
    collection_json = await service.get_json(user_id)
    response = Response(
        content=collection_json, media_type="application/json; charset=utf-8"
    )

    # The hash may be stale if the collection changed after prepare_collection
    actual_hash = await service.get_cached_json_hash(user_id)
    if actual_hash and hash_ == actual_hash:
        max_age = settings.CLIENT_CACHE_DAYS * 24 * 60 * 60
        response.headers["Cache-Control"] = f"private, max-age={max_age}"

    return response


@router.get("/folders", response_model=list[FolderEntry], response_model_by_alias=True)
async def folders(
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Return the folders containing the user's tracks as a flat tree."""
    try:
        music_folder = await LibrarySettings(db).get_folder(user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    reconciler = FolderReconciler(TrackRepository(db), UserFolder(db, user_id))
    result = await reconciler.find_all_folders(user_id, music_folder)
    return [f.to_api() for f in result]


@router.get("/tracks/by-file/{file_id}", response_model=TrackResponse)
async def track_by_file_id(
    file_id: int,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    track = await TrackRepository(db).find_by_file_id(file_id, user_id)
    if track is None:
        raise HTTPException(status_code=404, detail="Track not found")
    return track_to_collection(track)


@router.post("/tracks/{track_id}/scrobble", response_model=SuccessResponse)
async def scrobble(
    track_id: int,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    scrobbler: AggregateScrobbler = Depends(get_scrobbler),
):
    try:
        track = await TrackRepository(db).find(track_id, user_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Track not found")
    await scrobbler.record_track_played(track)
    return SuccessResponse()


@router.post("/tracks/{track_id}/playing", response_model=SuccessResponse)
async def set_playing_track(
    track_id: int,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    scrobbler: AggregateScrobbler = Depends(get_scrobbler),
):
    try:
        track = await TrackRepository(db).find(track_id, user_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Track not found")
    await scrobbler.set_now_playing(track)
    return SuccessResponse()


@router.get("/scan/state", response_model=ScanStateResponse)
async def scan_state(
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return ScanStateResponse(scannedCount=await TrackRepository(db).count(user_id))


@router.post("/scan/remove", response_model=RemoveFilesResponse)
async def remove_scanned(
    request: RemoveFilesRequest,
    user_id: str = Depends(get_current_user),
    maintenance: Maintenance = Depends(get_maintenance),
):
    """Forget the given files, e.g. after the host reported them deleted."""
    removed = await maintenance.remove_files(request.files, user_id)
    return RemoveFilesResponse(filesRemoved=removed)


@router.post("/scan/reset", response_model=SuccessResponse)
async def reset_scanned(
    user_id: str = Depends(get_current_user),
    maintenance: Maintenance = Depends(get_maintenance),
):
    await maintenance.reset_library(user_id)
    logger.info(f"Library reset requested by user {user_id}")
    return SuccessResponse()
