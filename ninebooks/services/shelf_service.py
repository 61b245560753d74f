import uuid
import typing
import datetime
import logging
import sqlalchemy
import sqlalchemy.ext.asyncio
import sqlalchemy.dialects.postgresql
import ninebooks.config
import ninebooks.models.book
import ninebooks.models.shelf
from ninebooks.utils.isbn import is_isbn_query, strip_separators

logger = logging.getLogger(__name__)

Shelf = ninebooks.models.shelf.Shelf
ShelfBook = ninebooks.models.shelf.ShelfBook
Book = ninebooks.models.book.Book

_UNSET = object()


def _now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def _normalize_isbn(isbn: typing.Optional[str]) -> str:
    isbn = strip_separators(isbn or "")
    if not isbn:
        raise ValueError("isbn_required")
    if not is_isbn_query(isbn):
        raise ValueError("invalid_isbn")
    return isbn


async def get_shelf_row(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    shelf_id: str,
    lock: bool = False
) -> Shelf:
    stmt = sqlalchemy.select(Shelf).where(Shelf.id == shelf_id)
    if lock:
        stmt = stmt.with_for_update()
    result = await session.execute(stmt)
    shelf = result.scalar_one_or_none()
    if shelf is None:
        raise ValueError("not_found")
    return shelf


async def _get_owned_shelf(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    user_id: str,
    shelf_id: str,
    lock: bool = False
) -> Shelf:
    shelf = await get_shelf_row(session, shelf_id, lock=lock)
    if shelf.user_id != user_id:
        raise ValueError("forbidden")
    return shelf


async def _get_slots(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    shelf_id: str
) -> typing.List[ShelfBook]:
    stmt = sqlalchemy.select(ShelfBook).where(
        ShelfBook.shelf_id == shelf_id
    ).order_by(ShelfBook.position.asc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


def _renumber(slots: typing.Sequence[ShelfBook]) -> None:
    for position, slot in enumerate(slots, start=1):
        if slot.position != position:
            slot.position = position


async def isbns_by_shelf(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    shelf_ids: typing.Sequence[str],
    per_shelf: int
) -> typing.Dict[str, typing.List[str]]:
    if not shelf_ids:
        return {}

    stmt = sqlalchemy.select(ShelfBook.shelf_id, ShelfBook.isbn).where(
        ShelfBook.shelf_id.in_(shelf_ids)
    ).order_by(ShelfBook.shelf_id, ShelfBook.position.asc())
    result = await session.execute(stmt)

    isbn_map: typing.Dict[str, typing.List[str]] = {}
    for shelf_id, isbn in result.all():
        isbns = isbn_map.setdefault(shelf_id, [])
        if len(isbns) < per_shelf:
            isbns.append(isbn)
    return isbn_map


async def create_shelf(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    user_id: str,
    name: typing.Optional[str]
) -> Shelf:
    name = (name or "").strip()
    if not name:
        raise ValueError("name_required")

    now = _now()
    shelf = Shelf(
        id=str(uuid.uuid4()),
        user_id=user_id,
        name=name,
        view_count=0,
        likes_count=0,
        bookmarks_count=0,
        created_at=now,
        updated_at=now
    )
    session.add(shelf)
    await session.commit()
    logger.info(f"User {user_id} created shelf {shelf.id}")
    return shelf


async def get_shelf(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    shelf_id: str
) -> typing.Tuple[Shelf, typing.List[typing.Dict[str, typing.Any]]]:
    shelf = await get_shelf_row(session, shelf_id)

    stmt = sqlalchemy.select(
        ShelfBook,
        Book.cover_url,
        Book.amazon_affiliate_url,
        Book.rakuten_affiliate_url
    ).outerjoin(
        Book, ShelfBook.isbn == Book.isbn
    ).where(
        ShelfBook.shelf_id == shelf_id
    ).order_by(ShelfBook.position.asc())
    result = await session.execute(stmt)

    books = []
    for slot, cover_url, amazon_url, rakuten_url in result.all():
        books.append({
            "isbn": slot.isbn,
            "position": slot.position,
            "review": slot.review,
            "is_spoiler": bool(slot.is_spoiler),
            "cover_url": cover_url,
            "amazon_affiliate_url": amazon_url,
            "rakuten_affiliate_url": rakuten_url,
        })
    return shelf, books


async def rename_shelf(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    user_id: str,
    shelf_id: str,
    name: typing.Optional[str]
) -> Shelf:
    shelf = await _get_owned_shelf(session, user_id, shelf_id)

    name = (name or "").strip()
    if not name:
        raise ValueError("name_required")

    shelf.name = name
    shelf.updated_at = _now()
    await session.commit()
    return shelf


async def delete_shelf(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    user_id: str,
    shelf_id: str
) -> None:
    await _get_owned_shelf(session, user_id, shelf_id)

    # slots and engagement rows go with it through ON DELETE CASCADE
    await session.execute(sqlalchemy.delete(Shelf).where(Shelf.id == shelf_id))
    await session.commit()
    logger.info(f"User {user_id} deleted shelf {shelf_id}")


async def list_user_shelves(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    user_id: str
) -> typing.List[Shelf]:
    stmt = sqlalchemy.select(Shelf).where(
        Shelf.user_id == user_id
    ).order_by(Shelf.created_at.desc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def search_shelves(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    query: typing.Optional[str],
    limit: typing.Optional[int] = None
) -> typing.List[typing.Dict[str, typing.Any]]:
    query = (query or "").strip()
    if not query:
        return []

    limit = limit or ninebooks.config.settings.shelf_search_limit
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")

    stmt = sqlalchemy.select(Shelf).where(
        Shelf.name.ilike(f"%{escaped}%", escape="\\")
    ).order_by(Shelf.created_at.desc()).limit(limit)
    result = await session.execute(stmt)
    shelves = list(result.scalars().all())
    if not shelves:
        return []

    isbn_map = await isbns_by_shelf(session, [s.id for s in shelves], per_shelf=3)
    return [shelf_summary(shelf, isbn_map.get(shelf.id, [])) for shelf in shelves]


def shelf_summary(shelf: Shelf, isbns: typing.List[str]) -> typing.Dict[str, typing.Any]:
    return {
        "id": shelf.id,
        "name": shelf.name,
        "user_id": shelf.user_id,
        "view_count": shelf.view_count,
        "likes_count": shelf.likes_count,
        "bookmarks_count": shelf.bookmarks_count,
        "created_at": shelf.created_at.isoformat() if shelf.created_at else "",
        "isbns": isbns,
    }


async def add_book(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    user_id: str,
    shelf_id: str,
    isbn: typing.Optional[str],
    cover_url: typing.Optional[str] = None,
    rakuten_affiliate_url: typing.Optional[str] = None
) -> ShelfBook:
    isbn = _normalize_isbn(isbn)
    shelf = await _get_owned_shelf(session, user_id, shelf_id, lock=True)

    slots = await _get_slots(session, shelf_id)
    if any(slot.isbn == isbn for slot in slots):
        raise ValueError("already_on_shelf")
    if len(slots) >= ninebooks.config.settings.shelf_max_books:
        raise ValueError("shelf_full")

    upsert = sqlalchemy.dialects.postgresql.insert(Book).values(
        isbn=isbn,
        cover_url=cover_url,
        rakuten_affiliate_url=rakuten_affiliate_url
    )
    upsert = upsert.on_conflict_do_update(
        index_elements=[Book.isbn],
        set_={
            "cover_url": sqlalchemy.func.coalesce(upsert.excluded.cover_url, Book.cover_url),
            "rakuten_affiliate_url": sqlalchemy.func.coalesce(
                upsert.excluded.rakuten_affiliate_url, Book.rakuten_affiliate_url
            ),
        }
    )
    await session.execute(upsert)

    slot = ShelfBook(
        id=str(uuid.uuid4()),
        shelf_id=shelf_id,
        isbn=isbn,
        position=len(slots) + 1,
        review=None,
        is_spoiler=False,
        created_at=_now()
    )
    session.add(slot)
    shelf.updated_at = _now()
    await session.commit()
    return slot


async def update_slot(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    user_id: str,
    shelf_id: str,
    isbn: str,
    review: typing.Any = _UNSET,
    is_spoiler: typing.Optional[bool] = None,
    position: typing.Optional[int] = None
) -> ShelfBook:
    isbn = strip_separators(isbn)
    shelf = await _get_owned_shelf(session, user_id, shelf_id, lock=True)

    slots = await _get_slots(session, shelf_id)
    target = next((slot for slot in slots if slot.isbn == isbn), None)
    if target is None:
        raise ValueError("not_found")

    if review is not _UNSET:
        target.review = review
    if is_spoiler is not None:
        target.is_spoiler = is_spoiler
    if position is not None:
        if not 1 <= position <= len(slots):
            raise ValueError("invalid_position")
        slots.remove(target)
        slots.insert(position - 1, target)
        _renumber(slots)

    shelf.updated_at = _now()
    await session.commit()
    return target


async def remove_book(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    user_id: str,
    shelf_id: str,
    isbn: str
) -> None:
    isbn = strip_separators(isbn)
    shelf = await _get_owned_shelf(session, user_id, shelf_id, lock=True)

    slots = await _get_slots(session, shelf_id)
    target = next((slot for slot in slots if slot.isbn == isbn), None)
    if target is None:
        raise ValueError("not_found")

    await session.delete(target)
    slots.remove(target)
    _renumber(slots)

    shelf.updated_at = _now()
    await session.commit()


async def reorder_books(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    user_id: str,
    shelf_id: str,
    isbns: typing.Sequence[str]
) -> typing.List[ShelfBook]:
    order = [strip_separators(isbn) for isbn in isbns or []]
    if not order:
        raise ValueError("items_required")

    shelf = await _get_owned_shelf(session, user_id, shelf_id, lock=True)
    slots = await _get_slots(session, shelf_id)

    by_isbn = {slot.isbn: slot for slot in slots}
    if len(order) != len(set(order)) or set(order) != set(by_isbn):
        raise ValueError("invalid_order")

    ordered = [by_isbn[isbn] for isbn in order]
    _renumber(ordered)

    shelf.updated_at = _now()
    await session.commit()
    return ordered


async def record_view(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    shelf_id: str,
    viewer_id: typing.Optional[str] = None
) -> typing.Tuple[int, bool]:
    shelf = await get_shelf_row(session, shelf_id)

    # owners looking at their own shelf do not count
    if viewer_id is not None and viewer_id == shelf.user_id:
        return shelf.view_count, False

    stmt = sqlalchemy.update(Shelf).where(
        Shelf.id == shelf_id
    ).values(
        view_count=Shelf.view_count + 1
    ).returning(Shelf.view_count)
    result = await session.execute(stmt)
    await session.commit()
    return result.scalar_one(), True
