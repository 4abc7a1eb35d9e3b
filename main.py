# main.py
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mygoprofile.app_logging import configure_logging
from mygoprofile.config import Settings, get_settings, parse_origins
from mygoprofile.errors import ApiError
from mygoprofile.gbp_routes import DataSourceFactory, build_data_source_factory
from mygoprofile.gbp_routes import router as business_router
from mygoprofile.google_oauth import router as google_oauth_router
from mygoprofile.views import router as views_router

logger = logging.getLogger("mygoprofile.main")


def create_app(
    settings: Settings | None = None,
    *,
    http_client: httpx.AsyncClient | None = None,
    data_source_factory: DataSourceFactory | None = None,
) -> FastAPI:
    """Build the app; tests pass their own http_client / data_source_factory."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    http_client = http_client or httpx.AsyncClient()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Business data source: %s", settings.business_data_source)
        if settings.secret_key == "change-me":
            logger.warning("SECRET_KEY is not set; session cookies are signed with the default key")
        yield
        await app.state.http_client.aclose()

    app = FastAPI(title="MyGoProfile", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.http_client = http_client
    app.state.data_source_factory = data_source_factory or build_data_source_factory(settings, http_client)

    # No "*" with allow_credentials=True
    allowed_origins = parse_origins(settings.frontend_origin) or ["http://localhost:3000"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.payload())

    @app.get("/health")
    async def health():
        return {"ok": True, "ts": int(time.time())}

    app.include_router(google_oauth_router)
    app.include_router(business_router)
    app.include_router(views_router)
    return app


app = create_app()
