import time
import uuid
import logging
import fastapi
import starlette.middleware.base

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(starlette.middleware.base.BaseHTTPMiddleware):
    """Logs every request with a request id and its duration."""

    async def dispatch(self, request: fastapi.Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        request.state.request_id = request_id
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"[{request_id}] {request.method} {request.url.path} raised")
            raise

        elapsed = time.perf_counter() - started
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            f"[{request_id}] {request.method} {request.url.path} "
            f"-> {response.status_code} in {elapsed:.3f}s"
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Process-Time"] = f"{elapsed:.6f}"
        return response


def setup_logging_middleware(app: fastapi.FastAPI):
    app.add_middleware(RequestLoggingMiddleware)
