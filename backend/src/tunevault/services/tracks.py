"""Track queries shared by the API, folder reconciliation and maintenance."""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tunevault.core.exceptions import NotFoundError
from tunevault.core.models import FileNode, Track

# Stay well below SQLite's host parameter limit in IN (...) lists
CHUNK_SIZE = 400


def _chunks(ids: List[int], size: int = CHUNK_SIZE) -> Iterable[List[int]]:
    for i in range(0, len(ids), size):
        yield ids[i : i + size]


@dataclass
class NodeInfo:
    """Name and parent of a folder node."""

    name: str
    parent: Optional[int]


class TrackRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def find(self, track_id: int, user_id: str) -> Track:
        stmt = select(Track).where(Track.id == track_id, Track.user_id == user_id)
        track = (await self.session.execute(stmt)).scalar_one_or_none()
        if track is None:
            raise NotFoundError(f"Track {track_id} not found")
        return track

    async def find_by_file_id(self, file_id: int, user_id: str) -> Optional[Track]:
        stmt = select(Track).where(
            Track.file_id == file_id, Track.user_id == user_id
        )
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def count(self, user_id: str) -> int:
        stmt = select(func.count(Track.id)).where(Track.user_id == user_id)
        return (await self.session.execute(stmt)).scalar_one()

    async def find_track_and_folder_ids(self, user_id: str) -> Dict[int, List[int]]:
        """Return the IDs of all tracks of the user grouped by parent folder ID."""
        stmt = (
            select(Track.id, Track.folder_id)
            .where(Track.user_id == user_id)
            .order_by(Track.folder_id, Track.id)
        )
        result: Dict[int, List[int]] = {}
        for track_id, folder_id in (await self.session.execute(stmt)).all():
            result.setdefault(folder_id, []).append(track_id)
        return result

    async def find_node_names_and_parents(
        self, node_ids: Iterable[int], storage_id: int
    ) -> Dict[int, NodeInfo]:
        """Bulk-fetch name and parent of the given nodes within one storage.

        Nodes on other storages are left out of the result. This is what
        tells ordinary local folders apart from shared and external ones.
        """
        ids = sorted(set(node_ids))
        result: Dict[int, NodeInfo] = {}
        for chunk in _chunks(ids):
            stmt = select(FileNode.id, FileNode.name, FileNode.parent_id).where(
                FileNode.id.in_(chunk), FileNode.storage_id == storage_id
            )
            for node_id, name, parent_id in (await self.session.execute(stmt)).all():
                result[node_id] = NodeInfo(name=name, parent=parent_id)
        return result

    async def delete_by_file_ids(self, file_ids: Iterable[int], user_id: str) -> int:
        """Delete the tracks of the given files, return the number deleted."""
        removed = 0
        for chunk in _chunks(sorted(set(file_ids))):
            stmt = delete(Track).where(
                Track.user_id == user_id, Track.file_id.in_(chunk)
            )
            result = await self.session.execute(stmt)
            removed += result.rowcount or 0
        await self.session.commit()
        return removed
