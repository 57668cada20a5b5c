from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PrepareCollectionResponse(BaseModel):
    hash: Optional[str]
    ignored_articles: List[str]


class FolderEntry(BaseModel):
    """One folder of the library folder tree."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str
    parent: Optional[int]
    track_ids: List[int] = Field(alias="trackIds")


class TrackResponse(BaseModel):
    id: int
    title: str
    number: Optional[int]
    disk: Optional[int]
    artistId: Optional[int]
    length: Optional[int]
    files: dict[str, int]


class RemoveFilesRequest(BaseModel):
    files: List[int]


class RemoveFilesResponse(BaseModel):
    filesRemoved: bool


class SuccessResponse(BaseModel):
    success: bool = True


class LogRequest(BaseModel):
    message: Optional[str] = None


class ScanStateResponse(BaseModel):
    scannedCount: int


class SettingsResponse(BaseModel):
    path: Optional[str]
    ignoredArticles: List[str]
    user: str
    appVersion: str


class UserPathRequest(BaseModel):
    value: str


class IgnoredArticlesRequest(BaseModel):
    value: List[str]
