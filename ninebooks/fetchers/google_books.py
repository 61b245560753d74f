import logging
import typing
import ninebooks.config
import ninebooks.models.books
from ninebooks.fetchers.base import BaseFetcher
from ninebooks.utils.isbn import strip_separators

logger = logging.getLogger(__name__)


class GoogleBooksFetcher(BaseFetcher):
    source = "google"

    def __init__(self, transport=None):
        super().__init__(
            api_url=ninebooks.config.settings.google_books_api_url,
            transport=transport
        )

    def has_credentials(self) -> bool:
        if not ninebooks.config.settings.google_books_api_key:
            logger.warning("GOOGLE_BOOKS_API_KEY is not set")
            return False
        return True

    async def _volumes(self, q: str) -> list[ninebooks.models.books.BookSearchResult]:
        params = {
            "q": q,
            "maxResults": min(ninebooks.config.settings.provider_max_results, 40),
            "printType": "books",
            "key": ninebooks.config.settings.google_books_api_key,
        }
        data = await self._fetch_json(f"{self.api_url}/volumes", params)
        return self.parse_volumes(data)

    async def search_by_text(self, query: str) -> list[ninebooks.models.books.BookSearchResult]:
        return await self._volumes(query)

    async def search_by_isbn(self, isbn: str) -> list[ninebooks.models.books.BookSearchResult]:
        return await self._volumes(f"isbn:{isbn}")

    def parse_volumes(
        self, data: typing.Optional[typing.Dict[str, typing.Any]]
    ) -> list[ninebooks.models.books.BookSearchResult]:
        if not data or "items" not in data:
            return []

        books = []
        for item in data["items"]:
            volume_info = item.get("volumeInfo", {})

            isbn = self._extract_isbn(volume_info.get("industryIdentifiers", []))
            if not isbn:
                continue

            image_links = volume_info.get("imageLinks", {})
            thumbnail = image_links.get("thumbnail") or image_links.get("smallThumbnail")
            cover_url = None
            if thumbnail:
                cover_url = "https:" + thumbnail[len("http:"):] if thumbnail.startswith("http:") else thumbnail

            books.append(ninebooks.models.books.BookSearchResult(
                isbn=isbn,
                title=volume_info.get("title") or "",
                author=", ".join(volume_info.get("authors", [])),
                cover_url=cover_url,
                source="google"
            ))

        return books

    def _extract_isbn(self, identifiers: list[typing.Dict[str, str]]) -> typing.Optional[str]:
        by_type = {
            identifier.get("type"): identifier.get("identifier", "")
            for identifier in identifiers
        }
        for isbn_type in ("ISBN_13", "ISBN_10"):
            if by_type.get(isbn_type):
                return strip_separators(by_type[isbn_type])
        return None
