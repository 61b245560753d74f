import logging
import sys
import contextlib
import fastapi
import uvicorn
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import ninebooks
import ninebooks.cache
import ninebooks.config
import ninebooks.db
import ninebooks.fetchers
import ninebooks.routes.books
import ninebooks.routes.feed
import ninebooks.routes.health
import ninebooks.routes.shelves
import ninebooks.routes.webhooks
import ninebooks.services.search_service as search_service
import ninebooks.middleware.cors as cors_middleware
import ninebooks.middleware.logging as logging_middleware
import ninebooks.middleware.rate_limit as rate_limit_middleware

settings = ninebooks.config.settings

logger = logging.getLogger(__name__)

DESCRIPTION = """
Curate the nine books that define you, share the shelf, swipe through other people's.

- Nine-slot shelves with per-book commentary and spoiler flags
- Swipe feed of public shelves ordered by latest, most bookmarked or random
- Likes and bookmarks on shelves, bookmarks on single books
- Book search over Rakuten Books and Google Books behind a 24 hour cache
"""


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def build_providers() -> list:
    # list order is priority order for the ISBN dedup
    return [ninebooks.fetchers.RakutenBooksFetcher(), ninebooks.fetchers.GoogleBooksFetcher()]


@contextlib.asynccontextmanager
async def lifespan(app: fastapi.FastAPI):
    await ninebooks.db.init_db()
    cache = await ninebooks.cache.init_book_cache()

    async with contextlib.AsyncExitStack() as stack:
        providers = [await stack.enter_async_context(p) for p in build_providers()]
        search_service.aggregator = search_service.BookSearchAggregator(providers, cache)
        logger.info(
            f"Search ready with providers {[p.source for p in providers]} "
            f"and a {settings.book_cache_backend} cache"
        )
        try:
            yield
        finally:
            search_service.aggregator = None

    await ninebooks.cache.close_redis()
    await ninebooks.db.close_db()
    logger.info("ninebooks API stopped")


def create_app() -> fastapi.FastAPI:
    app = fastapi.FastAPI(
        title="ninebooks API",
        description=DESCRIPTION,
        version=ninebooks.__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    if settings.env == "development":
        cors_middleware.setup_cors(app)
    logging_middleware.setup_logging_middleware(app)

    if settings.rate_limit_enabled:
        app.state.limiter = rate_limit_middleware.limiter
        app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    for module in (
        ninebooks.routes.health,
        ninebooks.routes.books,
        ninebooks.routes.feed,
        ninebooks.routes.shelves,
        ninebooks.routes.webhooks,
    ):
        app.include_router(module.router)
    return app


configure_logging()
app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "ninebooks.main:app",
        host=settings.api_host,
        port=settings.api_http_port,
        workers=settings.api_workers,
        log_level=settings.log_level.lower()
    )
