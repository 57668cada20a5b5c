import datetime
import shutil
from pathlib import Path
from typing import Any, Optional

from loguru import logger
from sqlalchemy import Engine, event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tunevault.core.config import settings
from tunevault.core.models import Base

engine = create_async_engine(
    settings.DB_URL,
    echo=settings.DB_ECHO,
    connect_args={"check_same_thread": False, "timeout": 30},
)


@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection: Any, connection_record: Any) -> None:
    """Lets the API process and the worker CLI share one SQLite file.

    WAL keeps readers (collection and folder requests) from blocking behind
    maintenance writes, and the busy timeout makes a writer wait for the
    other process instead of failing with "database is locked".
    """
    if settings.DB_URL.startswith("sqlite"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.execute("PRAGMA busy_timeout=30000")
        cursor.close()


AsyncSessionLocal = async_sessionmaker(
    bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


def _prune_backups(db_path: Path, keep: int) -> None:
    # timestamped names sort chronologically
    backups = sorted(db_path.parent.glob(f"{db_path.name}.*.bak"))
    for old in backups[:-keep] if keep > 0 else backups:
        old.unlink()
        logger.debug(f"Removed old database backup {old}")


async def backup_db() -> Optional[Path]:
    """Copy the library database next to itself before it is wiped.

    Only the newest ``DB_BACKUP_RETENTION`` copies are kept. Returns the path
    of the new copy, or None when there was nothing to back up or the copy
    failed.
    """
    src = settings.DB_PATH
    if not src.exists():
        return None

    stamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    dst = src.with_name(f"{src.name}.{stamp}.bak")
    try:
        shutil.copy2(src, dst)
        _prune_backups(src, settings.DB_BACKUP_RETENTION)
    except OSError as e:
        logger.error(f"Failed to back up the library database: {e}")
        return None
    logger.info(f"Library database backed up to {dst}")
    return dst


async def init_db(force: bool = False) -> None:
    """Create the tables of all models.

    Args:
        force: Drop every table first, after backing the database up. All
            collection validity tokens go with the cache table, so the
            on-disk collection blobs are cleared as well.
    """
    settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    if force:
        logger.warning("Re-creating all tables, the library of every user is lost")
        await backup_db()
        shutil.rmtree(settings.BLOB_CACHE_DIR, ignore_errors=True)

    async with engine.begin() as conn:
        if force:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ready.")
