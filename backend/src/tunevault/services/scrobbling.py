"""Recording played tracks."""

from datetime import datetime, timezone
from typing import List, Optional, Protocol

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from tunevault.core.models import Track


class Scrobbler(Protocol):
    async def record_track_played(
        self, track: Track, time_of_play: Optional[datetime] = None
    ) -> None: ...

    async def set_now_playing(
        self, track: Track, time_of_play: Optional[datetime] = None
    ) -> None: ...


class AggregateScrobbler:
    """Forwards every call to each of the given scrobblers in order."""

    def __init__(self, scrobblers: List[Scrobbler]):
        self.scrobblers = scrobblers

    async def record_track_played(
        self, track: Track, time_of_play: Optional[datetime] = None
    ) -> None:
        for scrobbler in self.scrobblers:
            await scrobbler.record_track_played(track, time_of_play)

    async def set_now_playing(
        self, track: Track, time_of_play: Optional[datetime] = None
    ) -> None:
        for scrobbler in self.scrobblers:
            await scrobbler.set_now_playing(track, time_of_play)


class PlayCountScrobbler:
    """Keeps the play count and last play time of tracks in the library."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def record_track_played(
        self, track: Track, time_of_play: Optional[datetime] = None
    ) -> None:
        track.play_count = (track.play_count or 0) + 1
        track.last_played = time_of_play or datetime.now(timezone.utc)
        await self.session.commit()
        logger.debug(f"Track {track.id} played, play count {track.play_count}")

    async def set_now_playing(
        self, track: Track, time_of_play: Optional[datetime] = None
    ) -> None:
        # nothing to store locally
        pass
