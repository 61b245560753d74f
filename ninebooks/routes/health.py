import datetime
import fastapi
import ninebooks
import ninebooks.config
import ninebooks.models.responses
import ninebooks.middleware.rate_limit

router = fastapi.APIRouter(prefix="/health", tags=["Health"])

limiter = ninebooks.middleware.rate_limit.limiter


@router.get(
    "",
    response_model=ninebooks.models.responses.HealthResponse,
    summary="Liveness check",
    description="Reports the cache backend in use and which book providers have credentials configured."
)
@limiter.limit(ninebooks.middleware.rate_limit.get_default_limit())
async def health(request: fastapi.Request):
    settings = ninebooks.config.settings
    return ninebooks.models.responses.HealthResponse(
        status="healthy",
        service="ninebooks-api",
        version=ninebooks.__version__,
        timestamp=datetime.datetime.now(datetime.timezone.utc).isoformat(),
        cache_backend=settings.book_cache_backend,
        providers={
            "rakuten": bool(settings.rakuten_app_id and settings.rakuten_access_key),
            "google": bool(settings.google_books_api_key),
        }
    )
