import asyncio
import pytest
from unittest.mock import AsyncMock
from ninebooks.client.api import FeedApiClient, FeedApiError
from ninebooks.client.hydration import MetadataHydrator
from tests.conftest import make_book


@pytest.fixture
def api():
    api = AsyncMock(spec=FeedApiClient)
    api.cache_status.return_value = ({}, [])
    api.search.return_value = []
    return api


@pytest.mark.asyncio
async def test_hits_render_and_misses_are_searched(api):
    rendered = []
    api.cache_status.return_value = ({"111": make_book("111")}, ["222", "333"])
    api.search.side_effect = lambda q: [make_book(q, "google")]
    hydrator = MetadataHydrator(api, stagger=0, on_metadata=lambda isbn, book: rendered.append(isbn))

    await hydrator.hydrate(["111", "222", "333"])

    assert rendered == ["111", "222", "333"]
    assert [call.args[0] for call in api.search.await_args_list] == ["222", "333"]
    assert hydrator.metadata["222"].source == "google"


@pytest.mark.asyncio
async def test_known_and_requested_isbns_are_skipped(api):
    api.cache_status.return_value = ({"111": make_book("111")}, [])
    hydrator = MetadataHydrator(api, stagger=0)

    await hydrator.hydrate(["111", "111"])
    assert hydrator.hydrate(["111"]) is None
    api.cache_status.assert_awaited_once_with(["111"])


@pytest.mark.asyncio
async def test_search_prefers_matching_isbn(api):
    api.cache_status.return_value = ({}, ["222"])
    api.search.return_value = [make_book("999"), make_book("222")]
    hydrator = MetadataHydrator(api, stagger=0)

    await hydrator.hydrate(["222"])

    assert hydrator.metadata["222"].isbn == "222"


@pytest.mark.asyncio
async def test_cache_status_failure_searches_everything(api):
    api.cache_status.side_effect = FeedApiError("INTERNAL_ERROR", "boom", 500)
    api.search.side_effect = lambda q: [make_book(q)]
    hydrator = MetadataHydrator(api, stagger=0)

    await hydrator.hydrate(["111", "222"])

    assert set(hydrator.metadata) == {"111", "222"}


@pytest.mark.asyncio
async def test_failed_search_can_be_retried(api):
    api.cache_status.return_value = ({}, ["222"])
    api.search.side_effect = [FeedApiError("INTERNAL_ERROR", "boom", 500), [make_book("222")]]
    hydrator = MetadataHydrator(api, stagger=0)

    await hydrator.hydrate(["222"])
    assert "222" not in hydrator.metadata

    await hydrator.hydrate(["222"])
    assert "222" in hydrator.metadata


@pytest.mark.asyncio
async def test_aclose_cancels_in_flight_work(api):
    started = asyncio.Event()

    async def hang(q):
        started.set()
        await asyncio.sleep(60)

    api.cache_status.return_value = ({}, ["222"])
    api.search.side_effect = hang
    hydrator = MetadataHydrator(api, stagger=0)

    task = hydrator.hydrate(["222"])
    await started.wait()
    await hydrator.aclose()

    assert task.cancelled()
    assert hydrator.pending == 0
