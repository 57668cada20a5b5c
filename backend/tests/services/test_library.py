"""Tests for the collection model built from live library data."""

from tunevault.services.library import Library

USER = "alice"


async def test_empty_library(db_session):
    assert await Library(db_session).to_collection(USER) == []


async def test_collection_structure(db_session, library_data):
    collection = await Library(db_session).to_collection(USER)

    assert [a["name"] for a in collection] == ["Miles Davis", "Queen", None]

    miles, queen, unknown = collection
    assert [al["name"] for al in miles["albums"]] == ["Kind of Blue"]
    assert [t["title"] for t in miles["albums"][0]["tracks"]] == ["So What", "Hidden"]

    opera = queen["albums"][0]
    assert opera["year"] == 1975
    # ordered by track number, not by insertion
    assert [t["title"] for t in opera["tracks"]] == ["Love of My Life", "Bohemian Rhapsody"]
    assert opera["tracks"][1]["files"] == {"audio/mpeg": 100}

    # tracks without an album are not dropped
    assert unknown["id"] is None
    loose = [t["title"] for t in unknown["albums"][0]["tracks"]]
    assert sorted(loose) == ["Live Track", "Loose"]


async def test_collection_excludes_other_users(db_session, library_data):
    collection = await Library(db_session).to_collection(USER)
    titles = [
        t["title"] for a in collection for al in a["albums"] for t in al["tracks"]
    ]
    assert "Bob's Song" not in titles
    assert len(titles) == 6


async def test_albums_without_tracks_are_omitted(db_session, library_data):
    from tunevault.core.models import Album

    db_session.add(Album(id=9, user_id=USER, name="Empty", album_artist_id=1))
    await db_session.commit()

    collection = await Library(db_session).to_collection(USER)
    names = [al["name"] for a in collection for al in a["albums"]]
    assert "Empty" not in names
