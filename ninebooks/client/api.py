import typing
import logging
import httpx
import pydantic
import ninebooks.config
import ninebooks.models.books
import ninebooks.models.shelves
from ninebooks.client.state import EngagementKind

logger = logging.getLogger(__name__)

BookSearchResult = ninebooks.models.books.BookSearchResult
ShelfSummaryOut = ninebooks.models.shelves.ShelfSummaryOut

_Payload = typing.TypeVar("_Payload", bound=pydantic.BaseModel)

_ENGAGEMENT_PATHS = {
    EngagementKind.LIKE: "likes",
    EngagementKind.BOOKMARK: "bookmarks",
}


class FeedApiError(Exception):
    def __init__(self, code: str, message: str, status_code: int):
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message
        self.status_code = status_code


class FeedPage(typing.NamedTuple):
    shelves: typing.List[ShelfSummaryOut]
    has_more: bool


class FeedApiClient:
    def __init__(
        self,
        base_url: typing.Optional[str] = None,
        token: typing.Optional[str] = None,
        timeout: typing.Optional[float] = None,
        transport: typing.Optional[httpx.AsyncBaseTransport] = None
    ):
        client_settings = ninebooks.config.FeedClientSettings()
        self.base_url = base_url or client_settings.feed_api_base_url
        self.token = token
        self.timeout = timeout if timeout is not None else client_settings.feed_request_timeout
        self.transport = transport
        self.client: typing.Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    @property
    def signed_in(self) -> bool:
        return self.token is not None

    async def connect(self):
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=self.transport
        )
        logger.info(f"Feed API client ready for {self.base_url}")

    async def close(self):
        if self.client:
            await self.client.aclose()
            self.client = None

    async def _request(
        self,
        method: str,
        path: str,
        params: typing.Optional[typing.Dict[str, typing.Any]] = None
    ) -> typing.Any:
        if self.client is None:
            await self.connect()

        try:
            response = await self.client.request(method, path, params=params)
        except httpx.HTTPError as e:
            logger.error(f"HTTP error calling {method} {path}: {e!r}")
            raise

        if response.status_code == 204:
            return None

        try:
            body = response.json()
        except ValueError:
            raise FeedApiError("INVALID_RESPONSE", "Response is not JSON", response.status_code)
        if not isinstance(body, dict):
            raise FeedApiError("INVALID_RESPONSE", "Response is not an envelope", response.status_code)

        if response.status_code >= 400 or not body.get("success"):
            error = body.get("error") or {}
            code = error.get("code", "HTTP_ERROR")
            logger.error(f"API error calling {method} {path}: {response.status_code} {code}")
            raise FeedApiError(code, error.get("message", ""), response.status_code)

        return body.get("data")

    async def get_feed_page(self, sort: str, offset: int) -> FeedPage:
        data = await self._request("GET", "/feed", params={"sort": sort, "offset": offset})
        page = _parse(ninebooks.models.shelves.FeedPageData, data, "/feed")
        return FeedPage(shelves=page.shelves, has_more=page.has_more)

    async def set_engagement(
        self,
        kind: EngagementKind,
        shelf_id: str,
        active: bool
    ) -> typing.Tuple[bool, int]:
        path = f"/shelves/{shelf_id}/{_ENGAGEMENT_PATHS[EngagementKind(kind)]}"
        data = await self._request("POST" if active else "DELETE", path)
        result = _parse(ninebooks.models.shelves.EngagementData, data, path)
        return result.active, result.count

    async def get_engagement_state(
        self,
        shelf_ids: typing.Sequence[str]
    ) -> typing.Tuple[typing.Set[str], typing.Set[str]]:
        path = "/users/me/engagement"
        data = await self._request("GET", path, params={"shelf_ids": ",".join(shelf_ids)})
        state = _parse(ninebooks.models.shelves.EngagementStateData, data, path)
        return set(state.liked), set(state.bookmarked)

    async def record_view(self, shelf_id: str) -> int:
        path = f"/shelves/{shelf_id}/view"
        data = await self._request("POST", path)
        return _parse(ninebooks.models.shelves.ViewData, data, path).view_count

    async def cache_status(
        self,
        isbns: typing.Sequence[str]
    ) -> typing.Tuple[typing.Dict[str, BookSearchResult], typing.List[str]]:
        path = "/books/cache-status"
        data = await self._request("GET", path, params={"ids": ",".join(isbns)})
        status = _parse(ninebooks.models.books.CacheStatusData, data, path)
        return status.hits, status.misses

    async def search(self, query: str) -> typing.List[BookSearchResult]:
        data = await self._request("GET", "/search", params={"q": query})
        return _parse(ninebooks.models.books.BookSearchData, data, "/search").books


def _parse(model: typing.Type[_Payload], data: typing.Any, path: str) -> _Payload:
    """Validate an envelope's ``data``; a 200 with the wrong shape is an API error too."""
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        logger.error(f"Unexpected payload from {path}: {e.error_count()} validation errors")
        raise FeedApiError("INVALID_RESPONSE", f"Unexpected payload from {path}", 200)
