"""Live view of a user's whole music library."""

from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tunevault.core.models import Album, Artist, Track


def _sort_name(name: Optional[str]) -> str:
    return (name or "").lower()


def track_to_collection(track: Track) -> Dict[str, Any]:
    return {
        "id": track.id,
        "title": track.title,
        "number": track.number,
        "disk": track.disk,
        "artistId": track.artist_id,
        "length": track.length,
        "files": {track.mimetype or "application/octet-stream": track.file_id},
    }


class Library:
    """Builds the nested artists/albums/tracks model of one user.

    Albums are grouped under their album artist and tracks under their album.
    Tracks without an album, and albums without an album artist, are grouped
    under an entry with ``id`` None so nothing is left out.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def to_collection(self, user_id: str) -> List[Dict[str, Any]]:
        artists = (
            await self.session.execute(select(Artist).where(Artist.user_id == user_id))
        ).scalars().all()
        albums = (
            await self.session.execute(select(Album).where(Album.user_id == user_id))
        ).scalars().all()
        tracks = (
            await self.session.execute(select(Track).where(Track.user_id == user_id))
        ).scalars().all()

        tracks_by_album: Dict[Optional[int], List[Track]] = {}
        for track in tracks:
            tracks_by_album.setdefault(track.album_id, []).append(track)

        albums_by_artist: Dict[Optional[int], List[Dict[str, Any]]] = {}
        for album in sorted(albums, key=lambda a: (_sort_name(a.name), a.id)):
            album_tracks = tracks_by_album.pop(album.id, [])
            if not album_tracks:
                continue
            albums_by_artist.setdefault(album.album_artist_id, []).append(
                self._album_entry(album.id, album.name, album.year, album.disk, album.cover_file_id, album_tracks)
            )
        orphan_tracks = [t for group in tracks_by_album.values() for t in group]
        if orphan_tracks:
            albums_by_artist.setdefault(None, []).append(
                self._album_entry(None, None, None, None, None, orphan_tracks)
            )

        collection = []
        for artist in sorted(artists, key=lambda a: (_sort_name(a.name), a.id)):
            artist_albums = albums_by_artist.pop(artist.id, None)
            if artist_albums:
                collection.append(
                    {"id": artist.id, "name": artist.name, "albums": artist_albums}
                )
        unknown_albums = [a for group in albums_by_artist.values() for a in group]
        if unknown_albums:
            collection.append({"id": None, "name": None, "albums": unknown_albums})
        return collection

    @staticmethod
    def _album_entry(
        album_id: Optional[int],
        name: Optional[str],
        year: Optional[int],
        disk: Optional[int],
        cover: Optional[int],
        tracks: List[Track],
    ) -> Dict[str, Any]:
        tracks = sorted(tracks, key=lambda t: (t.disk or 0, t.number or 0, t.id))
        return {
            "id": album_id,
            "name": name,
            "year": year,
            "disk": disk,
            "cover": cover,
            "tracks": [track_to_collection(t) for t in tracks],
        }
