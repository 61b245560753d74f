import uuid
import typing
import logging
import sqlalchemy
import sqlalchemy.ext.asyncio
import sqlalchemy.dialects.postgresql
import ninebooks.models.book
import ninebooks.models.engagement
import ninebooks.models.shelf

logger = logging.getLogger(__name__)

Shelf = ninebooks.models.shelf.Shelf
ShelfLike = ninebooks.models.engagement.ShelfLike
ShelfBookmark = ninebooks.models.engagement.ShelfBookmark
BookBookmark = ninebooks.models.engagement.BookBookmark

_SHELF_ENGAGEMENTS: typing.Dict[str, typing.Tuple[typing.Any, str, typing.Any]] = {
    "like": (ShelfLike, "uq_user_shelf_likes_user_shelf", Shelf.likes_count),
    "bookmark": (ShelfBookmark, "uq_user_shelf_bookmarks_user_shelf", Shelf.bookmarks_count),
}


class EngagementResult(typing.NamedTuple):
    active: bool
    count: int


async def _ensure_shelf(session: sqlalchemy.ext.asyncio.AsyncSession, shelf_id: str) -> None:
    result = await session.execute(sqlalchemy.select(Shelf.id).where(Shelf.id == shelf_id))
    if result.scalar_one_or_none() is None:
        raise ValueError("not_found")


async def _current_count(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    shelf_id: str,
    counter
) -> int:
    result = await session.execute(sqlalchemy.select(counter).where(Shelf.id == shelf_id))
    return result.scalar_one()


async def add_shelf_engagement(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    kind: str,
    user_id: str,
    shelf_id: str
) -> EngagementResult:
    """Record a like/bookmark. Adding twice keeps one row and counts once."""
    model, constraint, counter = _SHELF_ENGAGEMENTS[kind]
    await _ensure_shelf(session, shelf_id)

    stmt = sqlalchemy.dialects.postgresql.insert(model).values(
        id=str(uuid.uuid4()),
        user_id=user_id,
        shelf_id=shelf_id
    ).on_conflict_do_nothing(
        constraint=constraint
    ).returning(model.id)
    result = await session.execute(stmt)

    if result.scalar_one_or_none() is None:
        count = await _current_count(session, shelf_id, counter)
    else:
        update = sqlalchemy.update(Shelf).where(
            Shelf.id == shelf_id
        ).values(
            {counter: counter + 1}
        ).returning(counter)
        count = (await session.execute(update)).scalar_one()

    await session.commit()
    return EngagementResult(True, count)


async def remove_shelf_engagement(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    kind: str,
    user_id: str,
    shelf_id: str
) -> EngagementResult:
    """Drop a like/bookmark. The counter never goes below zero."""
    model, _, counter = _SHELF_ENGAGEMENTS[kind]
    await _ensure_shelf(session, shelf_id)

    stmt = sqlalchemy.delete(model).where(
        model.user_id == user_id,
        model.shelf_id == shelf_id
    ).returning(model.id)
    result = await session.execute(stmt)

    if result.scalar_one_or_none() is None:
        count = await _current_count(session, shelf_id, counter)
    else:
        # single statement so concurrent decrements cannot cross zero
        update = sqlalchemy.update(Shelf).where(
            Shelf.id == shelf_id
        ).values(
            {counter: sqlalchemy.func.greatest(counter - 1, 0)}
        ).returning(counter)
        count = (await session.execute(update)).scalar_one()

    await session.commit()
    return EngagementResult(False, count)


async def like_shelf(session, user_id: str, shelf_id: str) -> EngagementResult:
    return await add_shelf_engagement(session, "like", user_id, shelf_id)


async def unlike_shelf(session, user_id: str, shelf_id: str) -> EngagementResult:
    return await remove_shelf_engagement(session, "like", user_id, shelf_id)


async def bookmark_shelf(session, user_id: str, shelf_id: str) -> EngagementResult:
    return await add_shelf_engagement(session, "bookmark", user_id, shelf_id)


async def unbookmark_shelf(session, user_id: str, shelf_id: str) -> EngagementResult:
    return await remove_shelf_engagement(session, "bookmark", user_id, shelf_id)


async def bookmark_book(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    user_id: str,
    isbn: str
) -> bool:
    await session.execute(
        sqlalchemy.dialects.postgresql.insert(ninebooks.models.book.Book).values(
            isbn=isbn
        ).on_conflict_do_nothing(index_elements=["isbn"])
    )
    await session.execute(
        sqlalchemy.dialects.postgresql.insert(BookBookmark).values(
            id=str(uuid.uuid4()),
            user_id=user_id,
            isbn=isbn
        ).on_conflict_do_nothing(constraint="uq_user_book_bookmarks_user_isbn")
    )
    await session.commit()
    return True


async def unbookmark_book(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    user_id: str,
    isbn: str
) -> bool:
    await session.execute(
        sqlalchemy.delete(BookBookmark).where(
            BookBookmark.user_id == user_id,
            BookBookmark.isbn == isbn
        )
    )
    await session.commit()
    return False


async def get_engagement_state(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    user_id: str,
    shelf_ids: typing.Sequence[str]
) -> typing.Dict[str, typing.List[str]]:
    if not shelf_ids:
        return {"liked": [], "bookmarked": []}

    liked = await session.execute(
        sqlalchemy.select(ShelfLike.shelf_id).where(
            ShelfLike.user_id == user_id,
            ShelfLike.shelf_id.in_(shelf_ids)
        )
    )
    bookmarked = await session.execute(
        sqlalchemy.select(ShelfBookmark.shelf_id).where(
            ShelfBookmark.user_id == user_id,
            ShelfBookmark.shelf_id.in_(shelf_ids)
        )
    )
    return {
        "liked": list(liked.scalars().all()),
        "bookmarked": list(bookmarked.scalars().all()),
    }
