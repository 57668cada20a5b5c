"""Advisory cross-process mutex for long-running library operations.

Locks are keyed by user and a logical key (e.g. "scan"). The numeric lock ID
is derived through the database cache so that every worker process sharing
the database maps the same (user, key) pair to the same lock file. The lock
itself is an exclusive ``flock`` on that file, polled without blocking so
that waiting holds neither a thread nor the lock.

On hosts without ``fcntl`` the mutex degrades to no mutual exclusion and a
warning is logged; callers must not fail because of that.
"""

import asyncio
import os
import threading
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from loguru import logger

from tunevault.core.config import settings
from tunevault.core.db_cache import DbCache

try:
    import fcntl
except ImportError:  # not available on Windows
    fcntl = None

# flock() is per open file description, threads of one process need their own lock
_THREAD_LOCKS: dict[str, threading.Lock] = {}
_THREAD_LOCKS_MTX = threading.Lock()

# seconds between attempts while the mutex is held elsewhere
POLL_INTERVAL = 0.05


def _thread_lock_for(name: str) -> threading.Lock:
    with _THREAD_LOCKS_MTX:
        lock = _THREAD_LOCKS.get(name)
        if lock is None:
            lock = threading.Lock()
            _THREAD_LOCKS[name] = lock
        return lock


class Mutex:
    """A held (or degraded) lock. ``acquired`` is False in degraded mode."""

    def __init__(self, name: str, lock_path: Path):
        self.name = name
        self.lock_path = lock_path
        self.acquired = False
        self._thread_lock = _thread_lock_for(name)
        self._fd: Optional[int] = None

    def try_acquire(self) -> bool:
        """Take the lock if it is free, never wait.

        Returns True when the caller now holds the mutex, also in degraded
        mode where only the in-process lock could be taken.
        """
        if not self._thread_lock.acquire(blocking=False):
            return False
        if fcntl is None:
            logger.warning(
                "fcntl is not available on this platform, "
                f"mutex {self.name} provides no cross-process exclusion"
            )
            return True
        try:
            self.lock_path.parent.mkdir(parents=True, exist_ok=True)
            self._fd = os.open(self.lock_path, os.O_CREAT | os.O_RDWR, 0o644)
            fcntl.flock(self._fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            self.acquired = True
        except BlockingIOError:
            # held by another process
            self._close()
            self._thread_lock.release()
            return False
        except OSError as e:
            logger.warning(f"Failed to acquire the lock file {self.lock_path}: {e}")
            self._close()
        return True

    def release(self) -> None:
        try:
            if self._fd is not None and self.acquired:
                fcntl.flock(self._fd, fcntl.LOCK_UN)
        except OSError as e:
            logger.warning(f"Failed to unlock {self.lock_path}: {e}")
        finally:
            self.acquired = False
            self._close()
            self._thread_lock.release()

    def _close(self) -> None:
        if self._fd is not None:
            os.close(self._fd)
            self._fd = None


class Concurrency:
    """Factory of per-user mutexes."""

    def __init__(
        self,
        db_cache: DbCache,
        lock_dir: Optional[Path] = None,
        poll_interval: float = POLL_INTERVAL,
    ):
        self.db_cache = db_cache
        self.lock_dir = lock_dir or settings.LOCK_DIR
        self.poll_interval = poll_interval

    async def mutex_reserve(self, user_id: str, key: str) -> Mutex:
        """Wait until the mutex of (user_id, key) is held and return it.

        Waiting happens on the event loop between non-blocking attempts, so a
        cancelled waiter never ends up holding the lock.
        """
        mutex_id = settings.MUTEX_KEY_BASE + await self.db_cache.forced_get_id(
            user_id, f"mutex_key.{key}"
        )
        name = f"{mutex_id:x}"
        mutex = Mutex(name, self.lock_dir / f"{name}.lock")
        while not mutex.try_acquire():
            await asyncio.sleep(self.poll_interval)
        return mutex

    def mutex_release(self, mutex: Mutex) -> None:
        mutex.release()

    @asynccontextmanager
    async def mutex(self, user_id: str, key: str) -> AsyncIterator[Mutex]:
        """Hold the mutex of (user_id, key) for the duration of the block.

        Example:
            async with concurrency.mutex(user_id, "scan"):
                await maintenance.reset_library(user_id)
        """
        mutex = await self.mutex_reserve(user_id, key)
        try:
            yield mutex
        finally:
            self.mutex_release(mutex)
