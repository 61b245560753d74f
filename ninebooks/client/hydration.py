import asyncio
import typing
import logging
import httpx
import ninebooks.models.books
from ninebooks.client.api import FeedApiClient, FeedApiError

logger = logging.getLogger(__name__)

BookSearchResult = ninebooks.models.books.BookSearchResult

MetadataListener = typing.Callable[[str, BookSearchResult], None]


def _pick(isbn: str, books: typing.Sequence[BookSearchResult]) -> typing.Optional[BookSearchResult]:
    for book in books:
        if book.isbn == isbn:
            return book
    return books[0] if books else None


class MetadataHydrator:
    """Fills in title, author and cover for the ISBNs shown in the feed.

    One cache-status call tells which ISBNs the server already knows; those
    render at once. The rest are searched one by one with ``stagger`` seconds
    between calls so a fresh page does not hit the providers in a burst.
    """

    def __init__(
        self,
        api: FeedApiClient,
        stagger: float = 0.15,
        on_metadata: typing.Optional[MetadataListener] = None
    ):
        self.api = api
        self.stagger = stagger
        self.on_metadata = on_metadata
        self.metadata: typing.Dict[str, BookSearchResult] = {}
        self._requested: typing.Set[str] = set()
        self._tasks: typing.Set[asyncio.Task] = set()

    def hydrate(self, isbns: typing.Iterable[str]) -> typing.Optional[asyncio.Task]:
        wanted = [
            isbn for isbn in dict.fromkeys(isbns)
            if isbn and isbn not in self.metadata and isbn not in self._requested
        ]
        if not wanted:
            return None

        self._requested.update(wanted)
        task = asyncio.get_running_loop().create_task(self._run(wanted))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, isbns: typing.List[str]) -> None:
        try:
            hits, misses = await self.api.cache_status(isbns)
        except (FeedApiError, httpx.HTTPError, ValueError) as e:
            logger.warning(f"Cache status lookup failed, searching all {len(isbns)} ISBNs: {e!r}")
            hits, misses = {}, list(isbns)

        for isbn, book in hits.items():
            self._store(isbn, book)

        for index, isbn in enumerate(misses):
            if index:
                await asyncio.sleep(self.stagger)
            try:
                book = _pick(isbn, await self.api.search(isbn))
            except (FeedApiError, httpx.HTTPError, ValueError) as e:
                logger.warning(f"Metadata search for {isbn} failed: {e!r}")
                book = None

            if book is None:
                # allow a later hydrate() to try again
                self._requested.discard(isbn)
            else:
                self._store(isbn, book)

    def _store(self, isbn: str, book: BookSearchResult) -> None:
        self.metadata[isbn] = book
        self._requested.discard(isbn)
        if self.on_metadata is not None:
            self.on_metadata(isbn, book)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def cancel_pending(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        self._requested.clear()

    async def aclose(self) -> None:
        tasks = list(self._tasks)
        self.cancel_pending()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
