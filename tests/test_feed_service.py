import pytest
import sqlalchemy.dialects.postgresql
import ninebooks.services.feed_service as feed_service
from tests.conftest import make_list_result, make_rows_result


def make_shelves(mocker, count):
    shelves = []
    for i in range(count):
        shelf = mocker.MagicMock()
        shelf.id = f"shelf_{i}"
        shelf.name = f"Shelf {i}"
        shelf.user_id = "user_1"
        shelf.view_count = 0
        shelf.likes_count = 0
        shelf.bookmarks_count = i
        shelf.created_at = None
        shelves.append(shelf)
    return shelves


def compiled(stmt) -> str:
    return str(stmt.compile(dialect=sqlalchemy.dialects.postgresql.dialect()))


class TestGetFeedPage:
    @pytest.mark.asyncio
    async def test_full_page_with_more(self, mock_session, mocker):
        shelves = make_shelves(mocker, 3)
        mock_session.execute.side_effect = [
            make_list_result(shelves),
            make_rows_result([("shelf_0", "111"), ("shelf_1", "222")]),
        ]

        page, has_more = await feed_service.get_feed_page(mock_session, "latest", 0, limit=2)

        assert has_more is True
        assert [s["id"] for s in page] == ["shelf_0", "shelf_1"]
        assert page[0]["isbns"] == ["111"]
        assert page[1]["isbns"] == ["222"]

    @pytest.mark.asyncio
    async def test_last_page(self, mock_session, mocker):
        mock_session.execute.side_effect = [make_list_result(make_shelves(mocker, 1)), make_rows_result([])]

        page, has_more = await feed_service.get_feed_page(mock_session, "latest", 20, limit=20)

        assert has_more is False
        assert len(page) == 1
        assert page[0]["isbns"] == []

    @pytest.mark.asyncio
    async def test_offset_beyond_end(self, mock_session):
        mock_session.execute.return_value = make_list_result([])

        page, has_more = await feed_service.get_feed_page(mock_session, "bookmarks", 500)

        assert page == []
        assert has_more is False
        assert mock_session.execute.call_count == 1

    @pytest.mark.asyncio
    async def test_bookmarks_sort_orders_by_count(self, mock_session):
        mock_session.execute.return_value = make_list_result([])

        await feed_service.get_feed_page(mock_session, "bookmarks", 0)

        sql = compiled(mock_session.execute.call_args.args[0])
        assert "ORDER BY shelves.bookmarks_count DESC" in sql

    @pytest.mark.asyncio
    async def test_random_sort(self, mock_session):
        mock_session.execute.return_value = make_list_result([])

        await feed_service.get_feed_page(mock_session, "random", 0)

        assert "random()" in compiled(mock_session.execute.call_args.args[0])

    @pytest.mark.asyncio
    async def test_invalid_sort(self, mock_session):
        with pytest.raises(ValueError, match="invalid_sort"):
            await feed_service.get_feed_page(mock_session, "popular", 0)

    @pytest.mark.asyncio
    async def test_negative_offset(self, mock_session):
        with pytest.raises(ValueError, match="invalid_offset"):
            await feed_service.get_feed_page(mock_session, "latest", -1)
