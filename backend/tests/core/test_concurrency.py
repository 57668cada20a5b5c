"""Tests for tunevault.core.concurrency."""

import asyncio
import fcntl
import os
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import AsyncMock, patch

import pytest

from tunevault.core import concurrency as concurrency_module
from tunevault.core.concurrency import Concurrency
from tunevault.core.config import settings
from tunevault.core.db_cache import DbCache


@pytest.fixture
def concurrency(db_session, tmp_path):
    return Concurrency(DbCache(db_session), lock_dir=tmp_path / "locks")


async def test_mutex_acquires_and_releases(concurrency, tmp_path):
    async with concurrency.mutex("alice", "scan") as mutex:
        assert mutex.acquired
        assert mutex.lock_path.parent == tmp_path / "locks"
        assert mutex.lock_path.exists()
    assert not mutex.acquired


async def test_same_key_maps_to_same_lock(concurrency):
    async with concurrency.mutex("alice", "scan") as first:
        pass
    async with concurrency.mutex("alice", "scan") as second:
        pass
    async with concurrency.mutex("bob", "scan") as other:
        pass
    assert first.lock_path == second.lock_path
    assert other.lock_path != first.lock_path


def _shared_concurrency(tmp_path) -> Concurrency:
    # A session must not be shared by concurrent tasks, so the key lookup is mocked
    db_cache = AsyncMock()
    db_cache.forced_get_id.return_value = 7
    return Concurrency(db_cache, lock_dir=tmp_path / "locks", poll_interval=0.01)


async def test_mutex_serializes_holders(tmp_path):
    concurrency = _shared_concurrency(tmp_path)
    events = []

    async def hold(name: str):
        async with concurrency.mutex("alice", "scan"):
            events.append(f"{name}-in")
            await asyncio.sleep(0.05)
            events.append(f"{name}-out")

    await asyncio.gather(hold("a"), hold("b"))

    assert events in (
        ["a-in", "a-out", "b-in", "b-out"],
        ["b-in", "b-out", "a-in", "a-out"],
    )


async def test_mutex_released_on_error(concurrency):
    with pytest.raises(RuntimeError):
        async with concurrency.mutex("alice", "scan"):
            raise RuntimeError("boom")

    # Would block forever if the previous holder leaked the lock
    async with asyncio.timeout(5):
        async with concurrency.mutex("alice", "scan") as mutex:
            assert mutex.acquired


async def test_degrades_without_fcntl(concurrency):
    with patch.object(concurrency_module, "fcntl", None), patch.object(
        concurrency_module.logger, "warning"
    ) as warning:
        async with concurrency.mutex("alice", "scan") as mutex:
            assert not mutex.acquired
    warning.assert_called_once()


async def test_degrades_when_lock_file_unavailable(db_session, tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    concurrency = Concurrency(DbCache(db_session), lock_dir=blocker)

    async with concurrency.mutex("alice", "scan") as mutex:
        assert not mutex.acquired


async def test_waiters_do_not_occupy_executor_threads(tmp_path):
    executor = ThreadPoolExecutor(max_workers=1)
    asyncio.get_running_loop().set_default_executor(executor)
    concurrency = _shared_concurrency(tmp_path)
    entered = []

    async def hold(i: int):
        async with concurrency.mutex("alice", "scan"):
            entered.append(i)
            # the single worker thread stays free while the others wait
            assert await asyncio.to_thread(lambda: i) == i
            await asyncio.sleep(0.02)

    try:
        async with asyncio.timeout(5):
            await asyncio.gather(*(hold(i) for i in range(4)))
    finally:
        executor.shutdown(wait=False)

    assert sorted(entered) == [0, 1, 2, 3]


async def test_cancelled_waiter_does_not_keep_lock(tmp_path):
    concurrency = _shared_concurrency(tmp_path)
    holder = await concurrency.mutex_reserve("alice", "scan")

    waiter = asyncio.create_task(concurrency.mutex_reserve("alice", "scan"))
    await asyncio.sleep(0.05)
    waiter.cancel()
    with pytest.raises(asyncio.CancelledError):
        await waiter

    concurrency.mutex_release(holder)

    async with asyncio.timeout(3):
        async with concurrency.mutex("alice", "scan") as mutex:
            assert mutex.acquired


async def test_waits_for_lock_held_by_other_process(tmp_path):
    concurrency = _shared_concurrency(tmp_path)
    lock_path = tmp_path / "locks" / f"{settings.MUTEX_KEY_BASE + 7:x}.lock"
    lock_path.parent.mkdir(parents=True)
    # a separate open file description conflicts like another process would
    fd = os.open(lock_path, os.O_CREAT | os.O_RDWR)
    fcntl.flock(fd, fcntl.LOCK_EX)
    try:
        with pytest.raises(TimeoutError):
            async with asyncio.timeout(0.2):
                await concurrency.mutex_reserve("alice", "scan")
    finally:
        fcntl.flock(fd, fcntl.LOCK_UN)
        os.close(fd)

    async with asyncio.timeout(3):
        async with concurrency.mutex("alice", "scan") as mutex:
            assert mutex.acquired
