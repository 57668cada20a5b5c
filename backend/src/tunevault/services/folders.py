"""Folder view of the music library.

Tracks only know the ID of their immediate parent folder. To present the
library as a folder hierarchy, the folders holding tracks and all their
intermediate ancestors up to the library root have to be reconstructed.

Two sources are used for folder metadata:
- A bulk index query over the user's own storage. One query answers for all
  ordinary local folders.
- A per-node lookup through the user's view of the file tree, for folders
  outside the home storage (shared-in folders, external mounts). Folders
  which are not visible to the user any more are not found this way, and
  their tracks are shown directly under the library root.

Typical usage example:
    reconciler = FolderReconciler(TrackRepository(session), UserFolder(session, user_id))
    folders = await reconciler.find_all_folders(user_id, music_folder)
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Protocol, Set

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tunevault.core.models import FileNode, StorageMount
from tunevault.services.library_settings import MusicFolder
from tunevault.services.tracks import NodeInfo


@dataclass
class FolderNode:
    """A folder of the reconstructed library tree."""

    id: int
    name: str
    parent: Optional[int]
    track_ids: List[int] = field(default_factory=list)

    def to_api(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "parent": self.parent,
            "trackIds": self.track_ids,
        }


class FolderIndex(Protocol):
    async def find_track_and_folder_ids(self, user_id: str) -> Dict[int, List[int]]: ...

    async def find_node_names_and_parents(
        self, node_ids: Iterable[int], storage_id: int
    ) -> Dict[int, NodeInfo]: ...


class NodeLookup(Protocol):
    async def get_by_id(self, node_id: int) -> Optional[FileNode]: ...


class UserFolder:
    """The file tree as seen by one user: every storage mounted for them."""

    def __init__(self, session: AsyncSession, user_id: str):
        self.session = session
        self.user_id = user_id

    async def get_by_id(self, node_id: int) -> Optional[FileNode]:
        stmt = (
            select(FileNode)
            .join(StorageMount, StorageMount.storage_id == FileNode.storage_id)
            .where(FileNode.id == node_id, StorageMount.user_id == self.user_id)
        )
        return (await self.session.execute(stmt)).scalars().first()


class FolderReconciler:
    def __init__(self, index: FolderIndex, node_lookup: NodeLookup):
        self.index = index
        self.node_lookup = node_lookup

    async def find_all_folders(
        self, user_id: str, music_folder: MusicFolder
    ) -> List[FolderNode]:
        """Return all folders containing tracks directly or indirectly.

        The result always contains the library root (empty name, no parent)
        and every other folder's parent is present in the result.
        """
        tracks_by_folder = await self.index.find_track_and_folder_ids(user_id)
        names_and_parents = await self.index.find_node_names_and_parents(
            tracks_by_folder.keys(), music_folder.storage_id
        )

        # Shared files from many folders may end up directly under the root
        folders: Dict[int, FolderNode] = {}
        root_tracks: List[int] = []
        for folder_id, track_ids in tracks_by_folder.items():
            entry = None
            if folder_id != music_folder.id:
                entry = await self._folder_entry(
                    names_and_parents, folder_id, track_ids, music_folder
                )
            if entry is None:
                root_tracks.extend(track_ids)
            else:
                folders[folder_id] = entry

        folders[music_folder.id] = FolderNode(
            id=music_folder.id, name="", parent=None, track_ids=root_tracks
        )

        await self._add_missing_parents(folders, music_folder)
        return list(folders.values())

    async def _add_missing_parents(
        self, folders: Dict[int, FolderNode], music_folder: MusicFolder
    ) -> None:
        """Add the intermediate folders which contain no tracks directly."""
        unresolved: Set[int] = set()
        pending = self._missing_parents(folders, unresolved)
        while pending:
            names_and_parents = await self.index.find_node_names_and_parents(
                pending, music_folder.storage_id
            )
            for parent_id in sorted(pending):
                entry = await self._folder_entry(
                    names_and_parents, parent_id, [], music_folder
                )
                if entry is None:
                    unresolved.add(parent_id)
                else:
                    folders[parent_id] = entry
            pending = self._missing_parents(folders, unresolved)

        for folder in folders.values():
            if folder.id == music_folder.id:
                continue
            if folder.parent is None or folder.parent in unresolved:
                logger.debug(
                    f"Parent of folder {folder.id} not visible, attaching it to the library root"
                )
                folder.parent = music_folder.id

    @staticmethod
    def _missing_parents(
        folders: Dict[int, FolderNode], unresolved: Set[int]
    ) -> Set[int]:
        parents = {f.parent for f in folders.values() if f.parent is not None}
        return parents - folders.keys() - unresolved

    async def _folder_entry(
        self,
        names_and_parents: Dict[int, NodeInfo],
        folder_id: int,
        track_ids: List[int],
        music_folder: MusicFolder,
    ) -> Optional[FolderNode]:
        info = names_and_parents.get(folder_id)
        if info is not None:
            # normal folder within the user home storage
            name, parent = info.name, info.parent
        else:
            # shared folder, parent folder of a shared file or an externally mounted folder
            node = await self.node_lookup.get_by_id(folder_id)
            if node is None:
                logger.debug(f"Folder {folder_id} is not visible to the user")
                return None
            name, parent = node.name, node.parent_id

        if folder_id == music_folder.id:
            # the parent of the library root does not belong to the library
            parent = None

        return FolderNode(id=folder_id, name=name, parent=parent, track_ids=list(track_ids))
