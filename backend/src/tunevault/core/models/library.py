"""Library models: Artist, Album, Track."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tunevault.core.models.base import Base, TimestampMixin


class Artist(Base, TimestampMixin):
    """A performing artist as seen in one user's library."""

    __tablename__ = "artists"
    __table_args__ = (Index("idx_artist_user_name", "user_id", "name"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(String, index=True)
    name: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    albums: Mapped[List["Album"]] = relationship(back_populates="album_artist")
    tracks: Mapped[List["Track"]] = relationship(back_populates="artist")


class Album(Base, TimestampMixin):
    """An album of one user. The artist is the album artist."""

    __tablename__ = "albums"
    __table_args__ = (Index("idx_album_user_name", "user_id", "name"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(String, index=True)
    name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    disk: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    cover_file_id: Mapped[Optional[int]] = mapped_column(
        Integer, nullable=True
    )
    album_artist_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("artists.id"), nullable=True
    )

    album_artist: Mapped[Optional["Artist"]] = relationship(
        back_populates="albums"
    )
    tracks: Mapped[List["Track"]] = relationship(back_populates="album")


class Track(Base, TimestampMixin):
    """A scanned audio file of one user.

    ``folder_id`` is the file node ID of the immediate parent folder of the
    audio file, as seen by the owning user.
    """

    __tablename__ = "tracks"
    __table_args__ = (
        Index("idx_track_user_file", "user_id", "file_id", unique=True),
        Index("idx_track_user_folder", "user_id", "folder_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(String, index=True)
    file_id: Mapped[int] = mapped_column(Integer)
    folder_id: Mapped[int] = mapped_column(Integer)
    title: Mapped[str] = mapped_column(String)
    number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    disk: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    length: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    mimetype: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    artist_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("artists.id"), nullable=True
    )
    album_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("albums.id"), nullable=True
    )
    play_count: Mapped[int] = mapped_column(Integer, default=0)
    last_played: Mapped[Optional[datetime]] = mapped_column(nullable=True)

    artist: Mapped[Optional["Artist"]] = relationship(back_populates="tracks")
    album: Mapped[Optional["Album"]] = relationship(back_populates="tracks")
