from tunevault.core import db
from tunevault.core.config import settings


async def test_backup_keeps_newest(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "DATA_DIR", tmp_path)
    monkeypatch.setattr(settings, "DB_BACKUP_RETENTION", 2)
    settings.DB_PATH.write_bytes(b"sqlite")
    for stamp in ("20200101_000000", "20210101_000000", "20220101_000000"):
        (tmp_path / f"{settings.DB_NAME}.{stamp}.bak").write_bytes(b"old")

    created = await db.backup_db()

    assert created is not None and created.read_bytes() == b"sqlite"
    backups = sorted(p.name for p in tmp_path.glob("*.bak"))
    assert len(backups) == 2
    assert backups[0] == f"{settings.DB_NAME}.20220101_000000.bak"
    assert (tmp_path / backups[1]).read_bytes() == b"sqlite"


async def test_backup_without_database_is_noop(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "DATA_DIR", tmp_path)
    assert await db.backup_db() is None
    assert list(tmp_path.iterdir()) == []


async def test_forced_init_clears_collection_blobs(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "DATA_DIR", tmp_path)
    blob = settings.BLOB_CACHE_DIR / "some-user" / "entry.blob"
    blob.parent.mkdir(parents=True)
    blob.write_text("0\n[]", encoding="utf-8")

    try:
        await db.init_db(force=True)
    finally:
        await db.engine.dispose()

    assert not settings.BLOB_CACHE_DIR.exists()
