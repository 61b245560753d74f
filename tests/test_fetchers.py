import httpx
import pytest
import ninebooks.config
from ninebooks.fetchers import GoogleBooksFetcher, RakutenBooksFetcher

RAKUTEN_RESPONSE = {
    "Items": [
        {
            "title": "こころ",
            "author": "夏目漱石",
            "isbn": "9784101010014",
            "largeImageUrl": "https://thumbnail.image.rakuten.co.jp/large.jpg",
            "mediumImageUrl": "https://thumbnail.image.rakuten.co.jp/medium.jpg",
        },
        {"title": "No ISBN", "author": "Nobody", "isbn": ""},
        {
            "Item": {
                "title": "坊っちゃん",
                "author": "夏目漱石",
                "isbn": "9784101010038",
                "smallImageUrl": "https://thumbnail.image.rakuten.co.jp/small.jpg",
            }
        },
    ]
}

GOOGLE_RESPONSE = {
    "items": [
        {
            "volumeInfo": {
                "title": "Kokoro",
                "authors": ["Natsume Soseki", "Edwin McClellan"],
                "industryIdentifiers": [
                    {"type": "ISBN_10", "identifier": "0895260867"},
                    {"type": "ISBN_13", "identifier": "9780895260864"},
                ],
                "imageLinks": {"thumbnail": "http://books.google.com/thumb.jpg"},
            }
        },
        {"volumeInfo": {"title": "No identifiers"}},
        {
            "volumeInfo": {
                "title": "Old",
                "industryIdentifiers": [{"type": "ISBN_10", "identifier": "4-10-101001-3"}],
            }
        },
    ]
}


@pytest.fixture
def credentials(mocker):
    settings = ninebooks.config.settings
    mocker.patch.object(settings, "rakuten_app_id", "app")
    mocker.patch.object(settings, "rakuten_access_key", "secret")
    mocker.patch.object(settings, "google_books_api_key", "gkey")
    mocker.patch.object(settings, "search_provider_max_attempts", 1)
    return settings


def json_transport(payload, status_code=200, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=payload)
    return httpx.MockTransport(handler)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_rakuten_text_search(credentials):
    seen = []
    async with RakutenBooksFetcher(transport=json_transport(RAKUTEN_RESPONSE, seen=seen)) as fetcher:
        books = await fetcher.search("こころ")

    assert [b.isbn for b in books] == ["9784101010014", "9784101010038"]
    assert books[0].cover_url.endswith("large.jpg")
    assert books[1].cover_url.endswith("small.jpg")
    assert all(b.source == "rakuten" for b in books)

    request = seen[0]
    assert request.url.params["title"] == "こころ"
    assert request.url.params["formatVersion"] == "2"
    assert request.headers["Referer"] == "https://ninebooks.example/"
    assert request.headers["Origin"] == "https://ninebooks.example"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_rakuten_isbn_search_strips_separators(credentials):
    seen = []
    async with RakutenBooksFetcher(transport=json_transport({"Items": []}, seen=seen)) as fetcher:
        books = await fetcher.search("978-4-10-101001-4")

    assert books == []
    assert seen[0].url.params["isbn"] == "9784101010014"
    assert "title" not in seen[0].url.params


@pytest.mark.asyncio
@pytest.mark.unit
async def test_rakuten_without_credentials_skips_request(mocker):
    mocker.patch.object(ninebooks.config.settings, "rakuten_app_id", "")
    seen = []
    async with RakutenBooksFetcher(transport=json_transport(RAKUTEN_RESPONSE, seen=seen)) as fetcher:
        books = await fetcher.search("こころ")

    assert books == []
    assert seen == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_rakuten_error_status_returns_empty(credentials):
    async with RakutenBooksFetcher(transport=json_transport({"error": "x"}, status_code=500)) as fetcher:
        assert await fetcher.search("こころ") == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_timeout_is_retried(credentials, mocker):
    mocker.patch.object(ninebooks.config.settings, "search_provider_max_attempts", 2)
    mocker.patch.object(ninebooks.config.settings, "search_provider_retry_delay", 0)
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            raise httpx.ReadTimeout("slow", request=request)
        return httpx.Response(200, json=RAKUTEN_RESPONSE)

    async with RakutenBooksFetcher(transport=httpx.MockTransport(handler)) as fetcher:
        books = await fetcher.search("こころ")

    assert len(calls) == 2
    assert len(books) == 2


@pytest.mark.asyncio
@pytest.mark.unit
async def test_connection_error_returns_empty(credentials):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    async with RakutenBooksFetcher(transport=httpx.MockTransport(handler)) as fetcher:
        assert await fetcher.search("こころ") == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_google_text_search(credentials):
    seen = []
    async with GoogleBooksFetcher(transport=json_transport(GOOGLE_RESPONSE, seen=seen)) as fetcher:
        books = await fetcher.search("kokoro")

    assert [b.isbn for b in books] == ["9780895260864", "4101010013"]
    assert books[0].author == "Natsume Soseki, Edwin McClellan"
    assert books[0].cover_url == "https://books.google.com/thumb.jpg"
    assert books[1].cover_url is None
    assert books[0].source == "google"

    assert seen[0].url.path.endswith("/volumes")
    assert seen[0].url.params["q"] == "kokoro"
    assert seen[0].url.params["key"] == "gkey"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_google_isbn_search_uses_isbn_prefix(credentials):
    seen = []
    async with GoogleBooksFetcher(transport=json_transport({}, seen=seen)) as fetcher:
        books = await fetcher.search("9784101010014")

    assert books == []
    assert seen[0].url.params["q"] == "isbn:9784101010014"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_google_without_key_returns_empty(mocker):
    mocker.patch.object(ninebooks.config.settings, "google_books_api_key", "")
    async with GoogleBooksFetcher(transport=json_transport(GOOGLE_RESPONSE)) as fetcher:
        assert await fetcher.search("kokoro") == []
