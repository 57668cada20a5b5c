"""Host file tree models: FileNode, StorageMount.

These mirror the parts of the hosting platform's file cache that the music
library reads. The library never writes them; scanning and sharing belong to
the host.
"""

from typing import Optional

from sqlalchemy import Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from tunevault.core.models.base import Base


class FileNode(Base):
    """A file or folder in some storage of the host."""

    __tablename__ = "file_nodes"
    __table_args__ = (
        Index("idx_file_node_storage_parent", "storage_id", "parent_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    storage_id: Mapped[int] = mapped_column(Integer, index=True)
    parent_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    name: Mapped[str] = mapped_column(String)
    path: Mapped[str] = mapped_column(String)
    is_folder: Mapped[bool] = mapped_column(default=True)


class StorageMount(Base):
    """Grants a user visibility to a storage (home, shared-in or external)."""

    __tablename__ = "storage_mounts"

    user_id: Mapped[str] = mapped_column(String, primary_key=True)
    storage_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    is_home: Mapped[bool] = mapped_column(default=False)
