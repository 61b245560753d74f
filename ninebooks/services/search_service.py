import asyncio
import typing
import logging
import ninebooks.cache
import ninebooks.config
import ninebooks.models.books
from ninebooks.utils.isbn import normalize_query

logger = logging.getLogger(__name__)

BookSearchResult = ninebooks.models.books.BookSearchResult


class SearchProvider(typing.Protocol):
    source: str

    async def search(self, query: str) -> typing.List[BookSearchResult]:
        ...


class SearchOutcome(typing.NamedTuple):
    books: typing.List[BookSearchResult]
    cached: bool


def merge_results(
    provider_results: typing.Sequence[typing.Sequence[BookSearchResult]]
) -> typing.List[BookSearchResult]:
    """Concatenate in provider priority order, keeping the first result per ISBN."""
    seen: typing.Set[str] = set()
    merged = []
    for results in provider_results:
        for book in results:
            if book.isbn in seen:
                continue
            seen.add(book.isbn)
            merged.append(book)
    return merged


def _representative(isbn: str, results: typing.Sequence[BookSearchResult]) -> typing.Optional[BookSearchResult]:
    for book in results:
        if book.isbn == isbn:
            return book
    return results[0] if results else None


class BookSearchAggregator:
    def __init__(
        self,
        providers: typing.Sequence[SearchProvider],
        cache: ninebooks.cache.BookSearchCache,
        ttl: typing.Optional[int] = None
    ):
        self.providers = list(providers)
        self.cache = cache
        self.ttl = ttl if ttl is not None else ninebooks.config.settings.book_cache_ttl_seconds

    async def search(self, query: typing.Optional[str]) -> SearchOutcome:
        if not query or not query.strip():
            raise ValueError("query_required")

        key = normalize_query(query)
        entry = await self.cache.get(key)
        if entry is not None:
            logger.debug(f"Book search cache hit for {key!r}")
            return SearchOutcome(list(entry.value), True)

        books = merge_results(await self._query_providers(query))

        if any(book.cover_url for book in books):
            await self.cache.set(key, books, self.ttl)
        else:
            logger.info(f"Not caching {len(books)} cover-less results for {key!r}")

        return SearchOutcome(books, False)

    async def _query_providers(self, query: str) -> typing.List[typing.List[BookSearchResult]]:
        settled = await asyncio.gather(
            *(provider.search(query) for provider in self.providers),
            return_exceptions=True
        )

        provider_results = []
        for provider, outcome in zip(self.providers, settled):
            if isinstance(outcome, BaseException):
                logger.warning(f"Provider {provider.source} failed for {query!r}: {outcome!r}")
                provider_results.append([])
            else:
                provider_results.append(outcome or [])
        return provider_results

    async def cache_status(
        self, isbns: typing.Iterable[str]
    ) -> typing.Tuple[typing.Dict[str, BookSearchResult], typing.List[str]]:
        hits: typing.Dict[str, BookSearchResult] = {}
        misses: typing.List[str] = []

        for isbn in dict.fromkeys(i.strip() for i in isbns if i and i.strip()):
            entry = await self.cache.get(normalize_query(isbn))
            found = _representative(isbn, entry.value) if entry else None
            if found is None:
                misses.append(isbn)
            else:
                hits[isbn] = found

        return hits, misses


aggregator: typing.Optional[BookSearchAggregator] = None


def get_search_aggregator() -> BookSearchAggregator:
    if aggregator is None:
        raise RuntimeError("Book search aggregator is not initialised")
    return aggregator
