"""Cache models: CacheEntry."""

from typing import Optional

from sqlalchemy import String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from tunevault.core.models.base import Base, TimestampMixin


class CacheEntry(Base, TimestampMixin):
    """Small per-user values which must be reachable without a session.

    The (user_id, key) pair is unique; concurrent inserts of the same pair
    fail on the database level.
    """

    __tablename__ = "cache_entries"
    __table_args__ = (
        UniqueConstraint("user_id", "key", name="uq_cache_user_key"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(String, index=True)
    key: Mapped[str] = mapped_column(String(64))
    data: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
