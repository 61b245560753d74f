from unittest.mock import AsyncMock
import ninebooks.services.feed_service as feed_service


def test_feed_defaults(client, mocker):
    page = mocker.patch.object(feed_service, "get_feed_page", AsyncMock(return_value=([], False)))

    response = client.get("/api/v1/feed")

    assert response.status_code == 200
    assert response.json()["data"] == {"shelves": [], "has_more": False}
    assert page.await_args.kwargs == {"sort": "latest", "offset": 0}


def test_feed_passes_sort_and_offset(client, mocker):
    summary = {
        "id": "shelf_1",
        "name": "Shelf",
        "user_id": "user_1",
        "view_count": 0,
        "likes_count": 0,
        "bookmarks_count": 5,
        "created_at": "2026-01-01T00:00:00",
        "isbns": ["9784101010014"],
    }
    page = mocker.patch.object(feed_service, "get_feed_page", AsyncMock(return_value=([summary], True)))

    response = client.get("/api/v1/feed", params={"sort": "bookmarks", "offset": 20})

    data = response.json()["data"]
    assert data["has_more"] is True
    assert data["shelves"][0]["isbns"] == ["9784101010014"]
    assert page.await_args.kwargs == {"sort": "bookmarks", "offset": 20}


def test_feed_invalid_sort(client, mocker):
    mocker.patch.object(feed_service, "get_feed_page", AsyncMock(side_effect=ValueError("invalid_sort")))
    response = client.get("/api/v1/feed", params={"sort": "hot"})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_SORT"


def test_feed_negative_offset_rejected(client):
    response = client.get("/api/v1/feed", params={"offset": -1})
    assert response.status_code == 422
