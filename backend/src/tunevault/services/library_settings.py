"""Per-user library preferences."""

import json
from dataclasses import dataclass
from typing import List, Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tunevault.core.exceptions import NotFoundError
from tunevault.core.models import FileNode, StorageMount, UserSetting

DEFAULT_IGNORED_ARTICLES = ["The", "El", "La", "Los", "Las", "Le", "Les"]


@dataclass(frozen=True)
class MusicFolder:
    """The library root folder of a user."""

    id: int
    storage_id: int


class LibrarySettings:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get(self, user_id: str, key: str) -> Optional[str]:
        stmt = select(UserSetting.value).where(
            UserSetting.user_id == user_id, UserSetting.key == key
        )
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def _set(self, user_id: str, key: str, value: str) -> None:
        setting = await self.session.get(UserSetting, (user_id, key))
        if setting is None:
            self.session.add(UserSetting(user_id=user_id, key=key, value=value))
        else:
            setting.value = value
        await self.session.commit()

    async def get_folder(self, user_id: str) -> MusicFolder:
        """Resolve the library root folder of the user.

        Falls back to the root of the user's home storage when no folder has
        been configured or the configured one has disappeared.
        """
        folder_id = await self._get(user_id, "music_folder_id")
        if folder_id is not None:
            node = await self.session.get(FileNode, int(folder_id))
            if node is not None:
                return MusicFolder(id=node.id, storage_id=node.storage_id)
            logger.warning(
                f"Configured music folder {folder_id} of user {user_id} not found, "
                "using the home folder"
            )

        stmt = (
            select(FileNode)
            .join(StorageMount, StorageMount.storage_id == FileNode.storage_id)
            .where(
                StorageMount.user_id == user_id,
                StorageMount.is_home.is_(True),
                FileNode.parent_id.is_(None),
            )
        )
        home = (await self.session.execute(stmt)).scalars().first()
        if home is None:
            raise NotFoundError(f"No home storage mounted for user {user_id}")
        return MusicFolder(id=home.id, storage_id=home.storage_id)

    async def set_folder(self, user_id: str, folder_id: int) -> None:
        await self._set(user_id, "music_folder_id", str(folder_id))

    async def get_path(self, user_id: str) -> Optional[str]:
        """Path of the library root within its storage, None without a home storage."""
        try:
            folder = await self.get_folder(user_id)
        except NotFoundError:
            return None
        node = await self.session.get(FileNode, folder.id)
        return node.path if node is not None else None

    async def set_path(self, user_id: str, path: str) -> bool:
        """Make the folder at ``path`` of the home storage the library root.

        Returns False, leaving the setting untouched, when no such folder exists.
        """
        path = "/" + path.strip("/")
        stmt = (
            select(FileNode)
            .join(StorageMount, StorageMount.storage_id == FileNode.storage_id)
            .where(
                StorageMount.user_id == user_id,
                StorageMount.is_home.is_(True),
                FileNode.path == path,
                FileNode.is_folder.is_(True),
            )
        )
        node = (await self.session.execute(stmt)).scalars().first()
        if node is None:
            logger.info(f"Music path {path} of user {user_id} is not a folder of the home storage")
            return False
        await self.set_folder(user_id, node.id)
        return True

    async def get_ignored_articles(self, user_id: str) -> List[str]:
        value = await self._get(user_id, "ignored_articles")
        if value is None:
            return list(DEFAULT_IGNORED_ARTICLES)
        return json.loads(value)

    async def set_ignored_articles(self, user_id: str, articles: List[str]) -> None:
        await self._set(user_id, "ignored_articles", json.dumps(articles))
