import logging
import fastapi
import sqlalchemy.ext.asyncio
from fastapi import Query
import ninebooks.db
import ninebooks.middleware.rate_limit as rate_limit_middleware
import ninebooks.models.shelves
import ninebooks.services.feed_service as feed_service
import ninebooks.utils.responses

logger = logging.getLogger(__name__)

router = fastapi.APIRouter(prefix="/api/v1", tags=["Feed"])

limiter = rate_limit_middleware.limiter


@router.get(
    "/feed",
    response_model=ninebooks.models.shelves.FeedPageResponse,
    summary="Get one page of the discovery feed",
    description="""
    Page through public shelves for the swipe feed. Each entry carries up to
    nine ISBNs in slot order for the thumbnail grid; book metadata is not
    included and is hydrated separately by the client.

    **Sort Options:**
    - `latest`: newest shelves first (default)
    - `bookmarks`: most bookmarked first
    - `random`: shuffled on every request

    Pages hold 20 shelves. `has_more` is false once the end is reached; an
    offset past the end returns an empty page.
    """
)
@limiter.limit(rate_limit_middleware.get_default_limit())
async def get_feed(
    request: fastapi.Request,
    sort: str = Query("latest", description="latest, bookmarks or random"),
    offset: int = Query(0, ge=0, description="Pagination offset"),
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(ninebooks.db.get_session)
):
    try:
        shelves, has_more = await feed_service.get_feed_page(session, sort=sort, offset=offset)
        return ninebooks.utils.responses.success_response({"shelves": shelves, "has_more": has_more})
    except ValueError as e:
        return ninebooks.utils.responses.service_error_response(e)
    except Exception as e:
        logger.error(f"Unexpected error in get_feed: {e}")
        return ninebooks.utils.responses.error_response("INTERNAL_ERROR", "An unexpected error occurred", status_code=500)
