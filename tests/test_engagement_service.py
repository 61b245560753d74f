from unittest.mock import MagicMock

import pytest
import sqlalchemy.dialects.postgresql
import ninebooks.services.engagement_service as engagement_service
from tests.conftest import make_list_result, make_scalar_result


def compiled(stmt) -> str:
    return str(stmt.compile(dialect=sqlalchemy.dialects.postgresql.dialect()))


class TestLikeShelf:
    @pytest.mark.asyncio
    async def test_first_like_increments(self, mock_session):
        mock_session.execute.side_effect = [
            make_scalar_result("shelf_1"),
            make_scalar_result("like_1"),
            make_scalar_result(3),
        ]

        result = await engagement_service.like_shelf(mock_session, "user_1", "shelf_1")

        assert result == engagement_service.EngagementResult(True, 3)
        update = mock_session.execute.call_args_list[2].args[0]
        assert "likes_count + " in compiled(update)
        mock_session.commit.assert_called_once()

    @pytest.mark.asyncio
    async def test_repeated_like_does_not_increment(self, mock_session):
        mock_session.execute.side_effect = [
            make_scalar_result("shelf_1"),
            make_scalar_result(None),
            make_scalar_result(2),
        ]

        result = await engagement_service.like_shelf(mock_session, "user_1", "shelf_1")

        assert result == engagement_service.EngagementResult(True, 2)
        statements = [compiled(call.args[0]) for call in mock_session.execute.call_args_list]
        assert not any(sql.startswith("UPDATE") for sql in statements)

    @pytest.mark.asyncio
    async def test_insert_ignores_conflicts(self, mock_session):
        mock_session.execute.side_effect = [
            make_scalar_result("shelf_1"),
            make_scalar_result(None),
            make_scalar_result(2),
        ]

        await engagement_service.like_shelf(mock_session, "user_1", "shelf_1")

        insert = compiled(mock_session.execute.call_args_list[1].args[0])
        assert "ON CONFLICT ON CONSTRAINT uq_user_shelf_likes_user_shelf DO NOTHING" in insert

    @pytest.mark.asyncio
    async def test_unknown_shelf(self, mock_session):
        mock_session.execute.return_value = make_scalar_result(None)
        with pytest.raises(ValueError, match="not_found"):
            await engagement_service.like_shelf(mock_session, "user_1", "missing")
        mock_session.commit.assert_not_called()


class TestUnlikeShelf:
    @pytest.mark.asyncio
    async def test_decrement_is_clamped_at_zero(self, mock_session):
        mock_session.execute.side_effect = [
            make_scalar_result("shelf_1"),
            make_scalar_result("like_1"),
            make_scalar_result(0),
        ]

        result = await engagement_service.unlike_shelf(mock_session, "user_1", "shelf_1")

        assert result == engagement_service.EngagementResult(False, 0)
        update = compiled(mock_session.execute.call_args_list[2].args[0])
        assert "greatest(" in update.lower()

    @pytest.mark.asyncio
    async def test_unlike_without_like_leaves_counter(self, mock_session):
        mock_session.execute.side_effect = [
            make_scalar_result("shelf_1"),
            make_scalar_result(None),
            make_scalar_result(5),
        ]

        result = await engagement_service.unlike_shelf(mock_session, "user_1", "shelf_1")

        assert result == engagement_service.EngagementResult(False, 5)
        statements = [compiled(call.args[0]) for call in mock_session.execute.call_args_list]
        assert not any(sql.startswith("UPDATE") for sql in statements)


class TestBookmarkShelf:
    @pytest.mark.asyncio
    async def test_bookmark_updates_bookmarks_counter(self, mock_session):
        mock_session.execute.side_effect = [
            make_scalar_result("shelf_1"),
            make_scalar_result("bm_1"),
            make_scalar_result(1),
        ]

        result = await engagement_service.bookmark_shelf(mock_session, "user_1", "shelf_1")

        assert result.active is True
        assert "bookmarks_count" in compiled(mock_session.execute.call_args_list[2].args[0])

    @pytest.mark.asyncio
    async def test_unbookmark(self, mock_session):
        mock_session.execute.side_effect = [
            make_scalar_result("shelf_1"),
            make_scalar_result("bm_1"),
            make_scalar_result(0),
        ]
        result = await engagement_service.unbookmark_shelf(mock_session, "user_1", "shelf_1")
        assert result == engagement_service.EngagementResult(False, 0)


class TestBookBookmarks:
    @pytest.mark.asyncio
    async def test_bookmark_book_is_idempotent_insert(self, mock_session):
        mock_session.execute.return_value = MagicMock()

        assert await engagement_service.bookmark_book(mock_session, "user_1", "9784101010014") is True

        statements = [compiled(call.args[0]) for call in mock_session.execute.call_args_list]
        assert len(statements) == 2
        assert all("ON CONFLICT" in sql for sql in statements)
        mock_session.commit.assert_called_once()

    @pytest.mark.asyncio
    async def test_unbookmark_book(self, mock_session):
        mock_session.execute.return_value = MagicMock()
        assert await engagement_service.unbookmark_book(mock_session, "user_1", "9784101010014") is False
        mock_session.commit.assert_called_once()


class TestEngagementState:
    @pytest.mark.asyncio
    async def test_no_ids(self, mock_session):
        state = await engagement_service.get_engagement_state(mock_session, "user_1", [])
        assert state == {"liked": [], "bookmarked": []}
        mock_session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_returns_liked_and_bookmarked(self, mock_session):
        mock_session.execute.side_effect = [make_list_result(["s1"]), make_list_result(["s1", "s2"])]
        state = await engagement_service.get_engagement_state(mock_session, "user_1", ["s1", "s2", "s3"])
        assert state == {"liked": ["s1"], "bookmarked": ["s1", "s2"]}
