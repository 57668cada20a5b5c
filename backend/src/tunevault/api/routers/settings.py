"""Per-user library settings."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tunevault.api.deps import get_current_user, get_db
from tunevault.api.schemas import (
    IgnoredArticlesRequest,
    SettingsResponse,
    SuccessResponse,
    UserPathRequest,
)
from tunevault.services.library_settings import LibrarySettings

router = APIRouter()


@router.get("", response_model=SettingsResponse)
async def get_all(
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    library_settings = LibrarySettings(db)
    return SettingsResponse(
        path=await library_settings.get_path(user_id),
        ignoredArticles=await library_settings.get_ignored_articles(user_id),
        user=user_id,
        appVersion="0.1.0",
    )


@router.post("/user-path", response_model=SuccessResponse)
async def user_path(
    request: UserPathRequest,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Move the library root. Fails when the path is not a folder of the home storage."""
    success = await LibrarySettings(db).set_path(user_id, request.value)
    return SuccessResponse(success=success)


@router.post("/ignored-articles", response_model=SuccessResponse)
async def ignored_articles(
    request: IgnoredArticlesRequest,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await LibrarySettings(db).set_ignored_articles(user_id, request.value)
    return SuccessResponse()
