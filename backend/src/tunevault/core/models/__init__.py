"""SQLAlchemy models for the tunevault application.

Submodules:
- base: Base, TimestampMixin
- library: Artist, Album, Track
- files: FileNode, StorageMount
- cache: CacheEntry
- settings: UserSetting
"""

from tunevault.core.models.base import Base, TimestampMixin
from tunevault.core.models.cache import CacheEntry
from tunevault.core.models.files import FileNode, StorageMount
from tunevault.core.models.library import Album, Artist, Track
from tunevault.core.models.settings import UserSetting

__all__ = [
    "Base",
    "TimestampMixin",
    "Artist",
    "Album",
    "Track",
    "FileNode",
    "StorageMount",
    "CacheEntry",
    "UserSetting",
]
