import datetime
import pytest
import jwt
import fastapi.testclient
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.ext.asyncio import AsyncSession
import ninebooks.config
import ninebooks.db
import ninebooks.main
import ninebooks.models.books


def make_token(user_id: str = "user_1") -> str:
    payload = {
        "sub": user_id,
        "exp": datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(minutes=15)
    }
    return jwt.encode(
        payload,
        ninebooks.config.settings.jwt_secret_key,
        algorithm=ninebooks.config.settings.jwt_algorithm
    )


USER_HEADERS = {"Authorization": f"Bearer {make_token()}"}


def make_book(isbn: str, source: str = "rakuten", cover_url="https://covers.example/c.jpg", title: str = None):
    return ninebooks.models.books.BookSearchResult(
        isbn=isbn,
        title=title or f"Book {isbn}",
        author="Author",
        cover_url=cover_url,
        source=source
    )


def make_scalar_result(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    result.scalar_one.return_value = value
    result.scalars.return_value.all.return_value = value if isinstance(value, list) else []
    return result


def make_rows_result(rows):
    result = MagicMock()
    result.all.return_value = rows
    return result


def make_list_result(items):
    result = MagicMock()
    result.scalars.return_value.all.return_value = items
    return result


@pytest.fixture
def mock_session():
    session = AsyncMock(spec=AsyncSession)
    session.add = MagicMock()
    return session


@pytest.fixture
def mock_shelf():
    row = MagicMock()
    row.id = "shelf_1"
    row.user_id = "user_1"
    row.name = "私をかたちづくる本"
    row.view_count = 3
    row.likes_count = 2
    row.bookmarks_count = 1
    row.created_at = datetime.datetime(2026, 1, 1, 12, 0, 0)
    row.updated_at = datetime.datetime(2026, 1, 1, 12, 0, 0)
    return row


def make_slot(isbn: str, position: int, shelf_id: str = "shelf_1"):
    slot = MagicMock()
    slot.id = f"slot_{isbn}"
    slot.shelf_id = shelf_id
    slot.isbn = isbn
    slot.position = position
    slot.review = None
    slot.is_spoiler = False
    return slot


@pytest.fixture
def client(mock_session):
    ninebooks.main.app.dependency_overrides[ninebooks.db.get_session] = lambda: mock_session
    yield fastapi.testclient.TestClient(ninebooks.main.app)
    ninebooks.main.app.dependency_overrides.clear()
