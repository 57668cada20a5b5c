"""Tests for the Shiva browsing endpoints."""

import pytest
from httpx import AsyncClient

from tunevault.services.browse import page_to_limits, slugify


@pytest.mark.parametrize(
    "page_size,page,expected",
    [(10, 3, (10, 20)), (5, 1, (5, 0)), (None, 1, (None, None)), (0, 1, (None, None)), (5, 0, (None, None))],
)
def test_page_to_limits(page_size, page, expected):
    assert page_to_limits(page_size, page) == expected


def test_slugify():
    assert slugify("A Night at the Opera") == "a-night-at-the-opera"
    assert slugify("Bob's Band!") == "bob-s-band"
    assert slugify(None) == ""


class TestArtists:
    async def test_list(self, client: AsyncClient, library_data):
        response = await client.get("/api/v1/shiva/artists")

        assert response.status_code == 200
        data = response.json()
        assert [a["name"] for a in data] == ["Miles Davis", "Queen"]
        assert data[1]["uri"] == "/api/v1/shiva/artists/1"
        assert "albums" not in data[0]

    async def test_list_with_albums(self, client: AsyncClient, library_data):
        data = (await client.get("/api/v1/shiva/artists", params={"albums": "true"})).json()

        queen = data[1]
        assert [a["name"] for a in queen["albums"]] == ["A Night at the Opera"]
        assert "tracks" not in queen["albums"][0]

    async def test_full_tree(self, client: AsyncClient, library_data):
        data = (await client.get("/api/v1/shiva/artists/1", params={"fulltree": "true"})).json()

        tracks = data["albums"][0]["tracks"]
        assert [t["title"] for t in tracks] == ["Love of My Life", "Bohemian Rhapsody"]

    async def test_other_users_artist_not_found(self, client: AsyncClient, library_data):
        response = await client.get("/api/v1/shiva/artists/3")
        assert response.status_code == 404


class TestAlbums:
    async def test_by_artist(self, client: AsyncClient, library_data):
        data = (await client.get("/api/v1/shiva/albums", params={"artist": 2})).json()
        assert [a["name"] for a in data] == ["Kind of Blue"]
        assert data[0]["year"] == 1959

    async def test_single(self, client: AsyncClient, library_data):
        data = (await client.get("/api/v1/shiva/albums/2")).json()
        assert data["slug"] == "kind-of-blue"
        assert (await client.get("/api/v1/shiva/albums/99")).status_code == 404


class TestTracks:
    async def test_paged(self, client: AsyncClient, library_data):
        response = await client.get(
            "/api/v1/shiva/tracks", params={"page_size": 2, "page": 2}
        )
        assert [t["title"] for t in response.json()] == ["Live Track", "Loose"]

    async def test_by_album_full_tree(self, client: AsyncClient, library_data):
        data = (
            await client.get("/api/v1/shiva/tracks", params={"album": 1, "fulltree": "true"})
        ).json()

        assert [t["ordernum"] for t in data] == [9, 11]
        assert data[0]["artist"]["name"] == "Queen"
        assert data[0]["album"]["name"] == "A Night at the Opera"

    async def test_single_without_album(self, client: AsyncClient, library_data):
        data = (await client.get("/api/v1/shiva/tracks/4")).json()

        assert data["album"] is None
        assert data["artist"] == {"id": 1, "uri": "/api/v1/shiva/artists/1"}
        assert (await client.get("/api/v1/shiva/tracks/7")).status_code == 404
