import logging
import typing
import ninebooks.config
import ninebooks.models.books
from ninebooks.fetchers.base import BaseFetcher
from ninebooks.utils.isbn import strip_separators

logger = logging.getLogger(__name__)


class RakutenBooksFetcher(BaseFetcher):
    """Rakuten Books search. Results must not be persisted beyond display caching."""

    source = "rakuten"

    def __init__(self, transport=None):
        super().__init__(
            api_url=ninebooks.config.settings.rakuten_api_url,
            transport=transport
        )

    def has_credentials(self) -> bool:
        settings = ninebooks.config.settings
        if not settings.rakuten_app_id or not settings.rakuten_access_key:
            logger.warning("RAKUTEN_APP_ID or RAKUTEN_ACCESS_KEY is not set")
            return False
        return True

    def _headers(self) -> typing.Dict[str, str]:
        # the API only answers requests whose Referer/Origin is a registered domain
        site_url = ninebooks.config.settings.site_url.rstrip("/")
        return {
            "User-Agent": ninebooks.config.settings.provider_user_agent,
            "Referer": f"{site_url}/",
            "Origin": site_url,
        }

    def _params(self, **lookup: str) -> typing.Dict[str, typing.Any]:
        settings = ninebooks.config.settings
        return {
            "applicationId": settings.rakuten_app_id,
            "accessKey": settings.rakuten_access_key,
            "hits": settings.provider_max_results,
            "outOfStockFlag": 1,
            "formatVersion": 2,
            **lookup,
        }

    async def search_by_text(self, query: str) -> list[ninebooks.models.books.BookSearchResult]:
        data = await self._fetch_json(self.api_url, self._params(title=query), self._headers())
        return self.parse_items(data)

    async def search_by_isbn(self, isbn: str) -> list[ninebooks.models.books.BookSearchResult]:
        data = await self._fetch_json(self.api_url, self._params(isbn=isbn), self._headers())
        return self.parse_items(data)

    def parse_items(
        self, data: typing.Optional[typing.Dict[str, typing.Any]]
    ) -> list[ninebooks.models.books.BookSearchResult]:
        if not data or not data.get("Items"):
            return []

        books = []
        for item in data["Items"]:
            # formatVersion=1 wraps every entry in {"Item": {...}}
            item = item.get("Item", item)

            isbn = strip_separators(item.get("isbn") or "")
            if not isbn:
                continue

            cover_url = (
                item.get("largeImageUrl") or
                item.get("mediumImageUrl") or
                item.get("smallImageUrl") or
                None
            )

            books.append(ninebooks.models.books.BookSearchResult(
                isbn=isbn,
                title=item.get("title") or "",
                author=item.get("author") or "",
                cover_url=cover_url,
                source="rakuten"
            ))

        return books
