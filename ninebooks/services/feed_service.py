import typing
import sqlalchemy
import sqlalchemy.ext.asyncio
import ninebooks.config
import ninebooks.models.shelf
import ninebooks.services.shelf_service as shelf_service

Shelf = ninebooks.models.shelf.Shelf

SORT_MODES = ("latest", "bookmarks", "random")

_FEED_ORDERING: typing.Dict[str, typing.Callable[[], typing.List[typing.Any]]] = {
    "latest": lambda: [Shelf.created_at.desc(), Shelf.id],
    "bookmarks": lambda: [Shelf.bookmarks_count.desc(), Shelf.created_at.desc(), Shelf.id],
    "random": lambda: [sqlalchemy.func.random()],
}


async def get_feed_page(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    sort: str = "latest",
    offset: int = 0,
    limit: typing.Optional[int] = None
) -> typing.Tuple[typing.List[typing.Dict[str, typing.Any]], bool]:
    if sort not in _FEED_ORDERING:
        raise ValueError("invalid_sort")
    if offset < 0:
        raise ValueError("invalid_offset")

    limit = limit or ninebooks.config.settings.feed_page_size

    # one extra row tells us whether another page exists
    stmt = sqlalchemy.select(Shelf).order_by(
        *_FEED_ORDERING[sort]()
    ).limit(limit + 1).offset(offset)
    result = await session.execute(stmt)
    rows = list(result.scalars().all())

    has_more = len(rows) > limit
    page = rows[:limit]
    if not page:
        return [], False

    isbn_map = await shelf_service.isbns_by_shelf(
        session,
        [shelf.id for shelf in page],
        per_shelf=ninebooks.config.settings.shelf_max_books
    )
    return [shelf_service.shelf_summary(shelf, isbn_map.get(shelf.id, [])) for shelf in page], has_more
