import typing
import logging
import fastapi
import sqlalchemy.ext.asyncio
from fastapi import Query, Path
import ninebooks.db
import ninebooks.middleware.auth
import ninebooks.middleware.rate_limit as rate_limit_middleware
import ninebooks.models.requests
import ninebooks.models.shelves
import ninebooks.services.engagement_service as engagement_service
import ninebooks.services.shelf_service as shelf_service
import ninebooks.utils.responses

logger = logging.getLogger(__name__)

router = fastapi.APIRouter(prefix="/api/v1", tags=["Shelves"])

limiter = rate_limit_middleware.limiter

CurrentUser = ninebooks.middleware.auth.CurrentUser


def _failure(operation: str, e: Exception) -> fastapi.responses.JSONResponse:
    if isinstance(e, ValueError):
        return ninebooks.utils.responses.service_error_response(e)
    logger.error(f"Unexpected error in {operation}: {e}")
    return ninebooks.utils.responses.error_response("INTERNAL_ERROR", "An unexpected error occurred", status_code=500)


def _shelf_to_dict(shelf) -> typing.Dict[str, typing.Any]:
    return {
        "id": shelf.id,
        "user_id": shelf.user_id,
        "name": shelf.name,
        "view_count": shelf.view_count,
        "likes_count": shelf.likes_count,
        "bookmarks_count": shelf.bookmarks_count,
        "created_at": shelf.created_at.isoformat() if shelf.created_at else None,
        "updated_at": shelf.updated_at.isoformat() if shelf.updated_at else None
    }


def _slot_to_dict(slot) -> typing.Dict[str, typing.Any]:
    return {
        "isbn": slot.isbn,
        "position": slot.position,
        "review": slot.review,
        "is_spoiler": bool(slot.is_spoiler)
    }


# ============================================================
# Shelves
# ============================================================

@router.get(
    "/shelves/search",
    summary="Search shelves by name",
    description="""
    Case-insensitive substring match on shelf names, newest first, at most 30
    results. Each result carries up to three ISBNs for thumbnails. An empty
    query returns an empty list.
    """
)
@limiter.limit(rate_limit_middleware.get_default_limit())
async def search_shelves(
    request: fastapi.Request,
    q: str = Query("", description="Part of a shelf name"),
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(ninebooks.db.get_session)
):
    try:
        results = await shelf_service.search_shelves(session, q)
        return ninebooks.utils.responses.success_response({"q": q.strip(), "results": results})
    except Exception as e:
        return _failure("search_shelves", e)


@router.post(
    "/shelves",
    status_code=201,
    summary="Create a shelf",
    responses={
        201: {"description": "Shelf created"},
        400: {"description": "Name missing"},
        401: {"description": "Not authenticated"}
    }
)
@limiter.limit(rate_limit_middleware.get_default_limit())
async def create_shelf(
    request: fastapi.Request,
    body: ninebooks.models.requests.CreateShelfRequest,
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(ninebooks.db.get_session),
    current_user: CurrentUser = fastapi.Depends(ninebooks.middleware.auth.require_user)
):
    try:
        shelf = await shelf_service.create_shelf(session, current_user["user_id"], body.name)
        return ninebooks.utils.responses.success_response({"shelf": _shelf_to_dict(shelf)}, status_code=201)
    except Exception as e:
        return _failure("create_shelf", e)


@router.get(
    "/shelves/{shelf_id}",
    response_model=ninebooks.models.shelves.ShelfDetailResponse,
    summary="Get a shelf with its books",
    description="Returns the shelf, its counters and its slots in position order with affiliate links."
)
@limiter.limit(rate_limit_middleware.get_default_limit())
async def get_shelf(
    request: fastapi.Request,
    shelf_id: str = Path(..., description="Shelf id"),
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(ninebooks.db.get_session)
):
    try:
        shelf, books = await shelf_service.get_shelf(session, shelf_id)
        return ninebooks.utils.responses.success_response({"shelf": {**_shelf_to_dict(shelf), "books": books}})
    except Exception as e:
        return _failure("get_shelf", e)


@router.patch(
    "/shelves/{shelf_id}",
    summary="Rename a shelf",
    responses={403: {"description": "Not the owner"}, 404: {"description": "Shelf not found"}}
)
@limiter.limit(rate_limit_middleware.get_default_limit())
async def rename_shelf(
    request: fastapi.Request,
    body: ninebooks.models.requests.RenameShelfRequest,
    shelf_id: str = Path(..., description="Shelf id"),
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(ninebooks.db.get_session),
    current_user: CurrentUser = fastapi.Depends(ninebooks.middleware.auth.require_user)
):
    try:
        shelf = await shelf_service.rename_shelf(session, current_user["user_id"], shelf_id, body.name)
        return ninebooks.utils.responses.success_response({"shelf": _shelf_to_dict(shelf)})
    except Exception as e:
        return _failure("rename_shelf", e)


@router.delete(
    "/shelves/{shelf_id}",
    status_code=204,
    summary="Delete a shelf",
    description="Deletes the shelf together with its slots, likes and bookmarks."
)
@limiter.limit(rate_limit_middleware.get_default_limit())
async def delete_shelf(
    request: fastapi.Request,
    shelf_id: str = Path(..., description="Shelf id"),
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(ninebooks.db.get_session),
    current_user: CurrentUser = fastapi.Depends(ninebooks.middleware.auth.require_user)
):
    try:
        await shelf_service.delete_shelf(session, current_user["user_id"], shelf_id)
        return fastapi.Response(status_code=204)
    except Exception as e:
        return _failure("delete_shelf", e)


@router.post(
    "/shelves/{shelf_id}/view",
    summary="Count a shelf view",
    description="Increments the view counter unless the viewer owns the shelf."
)
@limiter.limit(rate_limit_middleware.get_default_limit())
async def record_view(
    request: fastapi.Request,
    shelf_id: str = Path(..., description="Shelf id"),
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(ninebooks.db.get_session),
    current_user: typing.Optional[CurrentUser] = fastapi.Depends(ninebooks.middleware.auth.get_current_user_optional)
):
    viewer_id = current_user["user_id"] if current_user else None
    try:
        view_count, counted = await shelf_service.record_view(session, shelf_id, viewer_id)
        return ninebooks.utils.responses.success_response({"view_count": view_count, "counted": counted})
    except Exception as e:
        return _failure("record_view", e)


# ============================================================
# Slots
# ============================================================

@router.post(
    "/shelves/{shelf_id}/books",
    status_code=201,
    summary="Add a book to a shelf",
    description="""
    Appends a book in the next free position. A shelf holds at most nine books
    (`SHELF_FULL`) and each ISBN at most once (`ALREADY_ON_SHELF`).
    """
)
@limiter.limit(rate_limit_middleware.get_default_limit())
async def add_book(
    request: fastapi.Request,
    body: ninebooks.models.requests.AddBookRequest,
    shelf_id: str = Path(..., description="Shelf id"),
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(ninebooks.db.get_session),
    current_user: CurrentUser = fastapi.Depends(ninebooks.middleware.auth.require_user)
):
    try:
        slot = await shelf_service.add_book(
            session,
            current_user["user_id"],
            shelf_id,
            body.isbn,
            cover_url=body.cover_url,
            rakuten_affiliate_url=body.rakuten_affiliate_url
        )
        return ninebooks.utils.responses.success_response({"slot": _slot_to_dict(slot)}, status_code=201)
    except Exception as e:
        return _failure("add_book", e)


@router.patch(
    "/shelves/{shelf_id}/books/reorder",
    summary="Reorder the books of a shelf",
    description="`isbns` must list every book on the shelf exactly once; positions become 1..n in that order."
)
@limiter.limit(rate_limit_middleware.get_default_limit())
async def reorder_books(
    request: fastapi.Request,
    body: ninebooks.models.requests.ReorderBooksRequest,
    shelf_id: str = Path(..., description="Shelf id"),
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(ninebooks.db.get_session),
    current_user: CurrentUser = fastapi.Depends(ninebooks.middleware.auth.require_user)
):
    try:
        slots = await shelf_service.reorder_books(session, current_user["user_id"], shelf_id, body.isbns)
        return ninebooks.utils.responses.success_response({"books": [_slot_to_dict(s) for s in slots]})
    except Exception as e:
        return _failure("reorder_books", e)


@router.patch(
    "/shelves/{shelf_id}/books/{isbn}",
    summary="Update the commentary, spoiler flag or position of a slot",
    description="Only the fields present in the body change. Send `review: null` to clear the commentary."
)
@limiter.limit(rate_limit_middleware.get_default_limit())
async def update_slot(
    request: fastapi.Request,
    body: ninebooks.models.requests.UpdateSlotRequest,
    shelf_id: str = Path(..., description="Shelf id"),
    isbn: str = Path(..., description="ISBN of the slot"),
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(ninebooks.db.get_session),
    current_user: CurrentUser = fastapi.Depends(ninebooks.middleware.auth.require_user)
):
    changes: typing.Dict[str, typing.Any] = {}
    if "review" in body.model_fields_set:
        changes["review"] = body.review
    try:
        slot = await shelf_service.update_slot(
            session,
            current_user["user_id"],
            shelf_id,
            isbn,
            is_spoiler=body.is_spoiler,
            position=body.position,
            **changes
        )
        return ninebooks.utils.responses.success_response({"slot": _slot_to_dict(slot)})
    except Exception as e:
        return _failure("update_slot", e)


@router.delete(
    "/shelves/{shelf_id}/books/{isbn}",
    status_code=204,
    summary="Remove a book from a shelf",
    description="The remaining books close the gap so positions stay 1..n."
)
@limiter.limit(rate_limit_middleware.get_default_limit())
async def remove_book(
    request: fastapi.Request,
    shelf_id: str = Path(..., description="Shelf id"),
    isbn: str = Path(..., description="ISBN of the slot"),
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(ninebooks.db.get_session),
    current_user: CurrentUser = fastapi.Depends(ninebooks.middleware.auth.require_user)
):
    try:
        await shelf_service.remove_book(session, current_user["user_id"], shelf_id, isbn)
        return fastapi.Response(status_code=204)
    except Exception as e:
        return _failure("remove_book", e)


# ============================================================
# Likes & bookmarks
# ============================================================

async def _engagement(handler, operation: str, session, user_id: str, shelf_id: str):
    try:
        result = await handler(session, user_id, shelf_id)
        return ninebooks.utils.responses.success_response({
            "shelf_id": shelf_id,
            "active": result.active,
            "count": result.count
        })
    except Exception as e:
        return _failure(operation, e)


@router.post(
    "/shelves/{shelf_id}/likes",
    response_model=ninebooks.models.shelves.EngagementResponse,
    summary="Like a shelf",
    description="Idempotent: liking twice keeps a single like and counts it once."
)
@limiter.limit(rate_limit_middleware.get_default_limit())
async def like_shelf(
    request: fastapi.Request,
    shelf_id: str = Path(..., description="Shelf id"),
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(ninebooks.db.get_session),
    current_user: CurrentUser = fastapi.Depends(ninebooks.middleware.auth.require_user)
):
    return await _engagement(engagement_service.like_shelf, "like_shelf", session, current_user["user_id"], shelf_id)


@router.delete(
    "/shelves/{shelf_id}/likes",
    response_model=ninebooks.models.shelves.EngagementResponse,
    summary="Remove a like",
    description="The like counter never drops below zero."
)
@limiter.limit(rate_limit_middleware.get_default_limit())
async def unlike_shelf(
    request: fastapi.Request,
    shelf_id: str = Path(..., description="Shelf id"),
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(ninebooks.db.get_session),
    current_user: CurrentUser = fastapi.Depends(ninebooks.middleware.auth.require_user)
):
    return await _engagement(engagement_service.unlike_shelf, "unlike_shelf", session, current_user["user_id"], shelf_id)


@router.post(
    "/shelves/{shelf_id}/bookmarks",
    response_model=ninebooks.models.shelves.EngagementResponse,
    summary="Bookmark a shelf",
    description="Idempotent: bookmarking twice keeps a single bookmark and counts it once."
)
@limiter.limit(rate_limit_middleware.get_default_limit())
async def bookmark_shelf(
    request: fastapi.Request,
    shelf_id: str = Path(..., description="Shelf id"),
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(ninebooks.db.get_session),
    current_user: CurrentUser = fastapi.Depends(ninebooks.middleware.auth.require_user)
):
    return await _engagement(engagement_service.bookmark_shelf, "bookmark_shelf", session, current_user["user_id"], shelf_id)


@router.delete(
    "/shelves/{shelf_id}/bookmarks",
    response_model=ninebooks.models.shelves.EngagementResponse,
    summary="Remove a shelf bookmark",
    description="The bookmark counter never drops below zero."
)
@limiter.limit(rate_limit_middleware.get_default_limit())
async def unbookmark_shelf(
    request: fastapi.Request,
    shelf_id: str = Path(..., description="Shelf id"),
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(ninebooks.db.get_session),
    current_user: CurrentUser = fastapi.Depends(ninebooks.middleware.auth.require_user)
):
    return await _engagement(engagement_service.unbookmark_shelf, "unbookmark_shelf", session, current_user["user_id"], shelf_id)


# ============================================================
# Users
# ============================================================

@router.get(
    "/users/me/engagement",
    response_model=ninebooks.models.shelves.EngagementStateResponse,
    summary="Which of these shelves you liked or bookmarked",
    description="Used by the feed to seed its like/bookmark state. `shelf_ids` is comma separated."
)
@limiter.limit(rate_limit_middleware.get_default_limit())
async def get_engagement_state(
    request: fastapi.Request,
    shelf_ids: str = Query("", description="Comma separated shelf ids"),
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(ninebooks.db.get_session),
    current_user: CurrentUser = fastapi.Depends(ninebooks.middleware.auth.require_user)
):
    ids = [shelf_id for shelf_id in shelf_ids.split(",") if shelf_id]
    try:
        state = await engagement_service.get_engagement_state(session, current_user["user_id"], ids)
        return ninebooks.utils.responses.success_response(state)
    except Exception as e:
        return _failure("get_engagement_state", e)


@router.get(
    "/users/{user_id}/shelves",
    summary="List the shelves of a user"
)
@limiter.limit(rate_limit_middleware.get_default_limit())
async def list_user_shelves(
    request: fastapi.Request,
    user_id: str = Path(..., description="User id"),
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(ninebooks.db.get_session)
):
    try:
        shelves = await shelf_service.list_user_shelves(session, user_id)
        return ninebooks.utils.responses.success_response({"shelves": [_shelf_to_dict(s) for s in shelves]})
    except Exception as e:
        return _failure("list_user_shelves", e)
