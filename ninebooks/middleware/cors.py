import fastapi
import fastapi.middleware.cors
import ninebooks.config
import ninebooks.middleware.logging


def setup_cors(app: fastapi.FastAPI):
    settings = ninebooks.config.settings
    app.add_middleware(
        fastapi.middleware.cors.CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=[m.strip() for m in settings.cors_allow_methods.split(",")],
        allow_headers=[h.strip() for h in settings.cors_allow_headers.split(",")],
        # the feed client reads these to correlate slow page fetches
        expose_headers=[ninebooks.middleware.logging.REQUEST_ID_HEADER, "X-Process-Time"],
    )
