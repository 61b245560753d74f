import typing
import logging
import fastapi
import sqlalchemy.ext.asyncio
from fastapi import Query, Path
import ninebooks.db
import ninebooks.middleware.auth
import ninebooks.middleware.rate_limit as rate_limit_middleware
import ninebooks.models.books
import ninebooks.services.engagement_service as engagement_service
import ninebooks.services.search_service as search_service
import ninebooks.utils.responses
from ninebooks.utils.isbn import is_isbn_query, strip_separators

logger = logging.getLogger(__name__)

router = fastapi.APIRouter(prefix="/api/v1", tags=["Books"])

limiter = rate_limit_middleware.limiter


@router.get(
    "/search",
    response_model=ninebooks.models.books.BookSearchResponse,
    summary="Search books across providers",
    description="""
    Search Rakuten Books and Google Books at the same time and merge the results.

    - A bare 10 or 13 digit query (hyphens and spaces ignored) is an exact ISBN lookup.
    - Results are deduplicated by ISBN; Rakuten wins when both providers return a book.
    - A provider that fails simply contributes no results.
    - Responses with at least one cover image are cached for 24 hours;
      `cached` tells whether this response came from the cache.

    **Examples:**
    - `/api/v1/search?q=こころ`
    - `/api/v1/search?q=978-4-10-101001-4`
    """,
    responses={
        200: {"description": "Merged search results"},
        400: {"description": "Query missing (`QUERY_REQUIRED`)"}
    }
)
@limiter.limit(rate_limit_middleware.get_search_limit())
async def search_books(
    request: fastapi.Request,
    q: typing.Optional[str] = Query(None, description="Title, author or ISBN"),
    aggregator: search_service.BookSearchAggregator = fastapi.Depends(search_service.get_search_aggregator)
):
    try:
        outcome = await aggregator.search(q)
        return ninebooks.utils.responses.success_response({
            "books": [book.model_dump() for book in outcome.books],
            "cached": outcome.cached
        })
    except ValueError as e:
        return ninebooks.utils.responses.service_error_response(e)
    except Exception as e:
        logger.error(f"Unexpected error in search_books: {e}")
        return ninebooks.utils.responses.error_response("INTERNAL_ERROR", "An unexpected error occurred", status_code=500)


@router.get(
    "/books/cache-status",
    response_model=ninebooks.models.books.CacheStatusResponse,
    summary="Check which ISBNs are already cached",
    description="""
    Split a comma separated list of ISBNs into cached `hits` (one representative
    result per ISBN) and `misses`. Never calls the external providers, so
    clients can render hits at once and only search for the misses.

    **Example:** `/api/v1/books/cache-status?ids=9784101010014,9784003101018`
    """
)
@limiter.limit(rate_limit_middleware.get_default_limit())
async def get_cache_status(
    request: fastapi.Request,
    ids: str = Query("", description="Comma separated ISBNs"),
    aggregator: search_service.BookSearchAggregator = fastapi.Depends(search_service.get_search_aggregator)
):
    try:
        hits, misses = await aggregator.cache_status(ids.split(","))
        return ninebooks.utils.responses.success_response({
            "hits": {isbn: book.model_dump() for isbn, book in hits.items()},
            "misses": misses
        })
    except Exception as e:
        logger.error(f"Unexpected error in get_cache_status: {e}")
        return ninebooks.utils.responses.error_response("INTERNAL_ERROR", "An unexpected error occurred", status_code=500)


async def _toggle_book_bookmark(
    handler,
    session: sqlalchemy.ext.asyncio.AsyncSession,
    user_id: str,
    isbn: str
) -> fastapi.responses.JSONResponse:
    isbn = strip_separators(isbn)
    if not is_isbn_query(isbn):
        return ninebooks.utils.responses.service_error_response(ValueError("invalid_isbn"))
    try:
        bookmarked = await handler(session, user_id, isbn)
        return ninebooks.utils.responses.success_response({"isbn": isbn, "bookmarked": bookmarked})
    except Exception as e:
        logger.error(f"Unexpected error toggling bookmark on book {isbn}: {e}")
        return ninebooks.utils.responses.error_response("INTERNAL_ERROR", "An unexpected error occurred", status_code=500)


@router.post(
    "/books/{isbn}/bookmarks",
    response_model=ninebooks.models.books.BookBookmarkResponse,
    summary="Bookmark a book",
    description="Idempotent: bookmarking an already bookmarked book is not an error."
)
@limiter.limit(rate_limit_middleware.get_default_limit())
async def bookmark_book(
    request: fastapi.Request,
    isbn: str = Path(..., description="ISBN"),
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(ninebooks.db.get_session),
    current_user: typing.Dict[str, typing.Any] = fastapi.Depends(ninebooks.middleware.auth.require_user)
):
    return await _toggle_book_bookmark(engagement_service.bookmark_book, session, current_user["user_id"], isbn)


@router.delete(
    "/books/{isbn}/bookmarks",
    response_model=ninebooks.models.books.BookBookmarkResponse,
    summary="Remove a book bookmark"
)
@limiter.limit(rate_limit_middleware.get_default_limit())
async def unbookmark_book(
    request: fastapi.Request,
    isbn: str = Path(..., description="ISBN"),
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(ninebooks.db.get_session),
    current_user: typing.Dict[str, typing.Any] = fastapi.Depends(ninebooks.middleware.auth.require_user)
):
    return await _toggle_book_bookmark(engagement_service.unbookmark_book, session, current_user["user_id"], isbn)
