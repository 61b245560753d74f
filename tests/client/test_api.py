import httpx
import pytest
from ninebooks.client.api import FeedApiClient, FeedApiError
from ninebooks.client.state import EngagementKind

SHELF = {
    "id": "shelf_1",
    "name": "Shelf",
    "user_id": "user_1",
    "view_count": 0,
    "likes_count": 2,
    "bookmarks_count": 1,
    "created_at": "2026-01-01T00:00:00",
    "isbns": ["9784101010014"],
}


def envelope(data, success=True, status_code=200, error=None):
    return httpx.Response(status_code, json={"success": success, "data": data, "error": error})


def recording_transport(responder):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return responder(request)

    return httpx.MockTransport(handler), seen


@pytest.mark.asyncio
async def test_get_feed_page():
    transport, seen = recording_transport(lambda r: envelope({"shelves": [SHELF], "has_more": True}))

    async with FeedApiClient(base_url="http://api.test/api/v1", transport=transport) as api:
        page = await api.get_feed_page("bookmarks", 20)

    assert page.has_more is True
    assert page.shelves[0].id == "shelf_1"
    assert seen[0].url.path == "/api/v1/feed"
    assert seen[0].url.params["sort"] == "bookmarks"
    assert seen[0].url.params["offset"] == "20"


@pytest.mark.asyncio
async def test_token_is_sent():
    transport, seen = recording_transport(lambda r: envelope({"view_count": 4, "counted": True}))

    async with FeedApiClient(base_url="http://api.test/api/v1", token="tok", transport=transport) as api:
        assert api.signed_in is True
        assert await api.record_view("shelf_1") == 4

    assert seen[0].headers["Authorization"] == "Bearer tok"
    assert seen[0].method == "POST"
    assert seen[0].url.path == "/api/v1/shelves/shelf_1/view"


@pytest.mark.asyncio
async def test_set_engagement_methods_and_paths():
    transport, seen = recording_transport(
        lambda r: envelope({"shelf_id": "shelf_1", "active": r.method == "POST", "count": 1})
    )

    async with FeedApiClient(base_url="http://api.test/api/v1", token="tok", transport=transport) as api:
        assert await api.set_engagement(EngagementKind.LIKE, "shelf_1", True) == (True, 1)
        assert await api.set_engagement("bookmark", "shelf_1", False) == (False, 1)

    assert (seen[0].method, seen[0].url.path) == ("POST", "/api/v1/shelves/shelf_1/likes")
    assert (seen[1].method, seen[1].url.path) == ("DELETE", "/api/v1/shelves/shelf_1/bookmarks")


@pytest.mark.asyncio
async def test_cache_status_joins_ids():
    hit = {"isbn": "111", "title": "T", "author": "A", "cover_url": None, "source": "rakuten"}
    transport, seen = recording_transport(lambda r: envelope({"hits": {"111": hit}, "misses": ["222"]}))

    async with FeedApiClient(base_url="http://api.test/api/v1", transport=transport) as api:
        hits, misses = await api.cache_status(["111", "222"])

    assert hits["111"].title == "T"
    assert misses == ["222"]
    assert seen[0].url.params["ids"] == "111,222"


@pytest.mark.asyncio
async def test_error_envelope_raises():
    error = {"code": "NOT_FOUND", "message": "not found", "details": {}}
    transport, _ = recording_transport(lambda r: envelope(None, success=False, status_code=404, error=error))

    async with FeedApiClient(base_url="http://api.test/api/v1", token="tok", transport=transport) as api:
        with pytest.raises(FeedApiError) as exc_info:
            await api.set_engagement("like", "missing", True)

    assert exc_info.value.code == "NOT_FOUND"
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_non_json_error_raises():
    transport, _ = recording_transport(lambda r: httpx.Response(502, text="Bad gateway"))

    async with FeedApiClient(base_url="http://api.test/api/v1", transport=transport) as api:
        with pytest.raises(FeedApiError) as exc_info:
            await api.search("kokoro")

    assert exc_info.value.code == "INVALID_RESPONSE"


@pytest.mark.asyncio
async def test_engagement_state():
    transport, seen = recording_transport(lambda r: envelope({"liked": ["a"], "bookmarked": ["b"]}))

    async with FeedApiClient(base_url="http://api.test/api/v1", token="tok", transport=transport) as api:
        liked, bookmarked = await api.get_engagement_state(["a", "b"])

    assert (liked, bookmarked) == ({"a"}, {"b"})
    assert seen[0].url.params["shelf_ids"] == "a,b"


@pytest.mark.asyncio
async def test_wrong_payload_shape_raises_api_error():
    transport, _ = recording_transport(lambda r: envelope({"items": []}))

    async with FeedApiClient(base_url="http://api.test/api/v1", transport=transport) as api:
        with pytest.raises(FeedApiError) as exc_info:
            await api.get_feed_page("latest", 0)

    assert exc_info.value.code == "INVALID_RESPONSE"


@pytest.mark.asyncio
async def test_non_object_body_raises_api_error():
    transport, _ = recording_transport(lambda r: httpx.Response(200, json=[1, 2]))

    async with FeedApiClient(base_url="http://api.test/api/v1", transport=transport) as api:
        with pytest.raises(FeedApiError) as exc_info:
            await api.record_view("shelf_1")

    assert exc_info.value.code == "INVALID_RESPONSE"
