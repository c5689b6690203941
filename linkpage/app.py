from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from linkpage.core.config import DEV_JWT_SECRET, Settings, get_settings
from linkpage.core.log import configure_logging
from linkpage.core.rate_limiter import RateLimiter
from linkpage.db.session import Database
from linkpage.repositories.sql_repository import SQLRepository
from linkpage.routers import auth as auth_router
from linkpage.routers import pages as pages_router
from linkpage.services.auth_service import AuthService
from linkpage.services.page_service import PageService

logger = logging.getLogger(__name__)

DEV_ORIGINS = {
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject baseline security headers (anti clickjacking, no sniffing, referrer policy)."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer-when-downgrade")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse({"error": str(exc.detail)}, status_code=exc.status_code, headers=getattr(exc, "headers", None))


async def _body_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.debug("[app] rejected body on %s: %s", request.url.path, exc.errors())
    return JSONResponse({"error": "Invalid JSON body."}, status_code=400)


async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("[app] unhandled error on %s", request.url.path, exc_info=exc)
    return JSONResponse({"error": "Internal error."}, status_code=500)


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    """Factory compatible with uvicorn --factory. Storage is built here, not at import."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    if settings.jwt_secret == DEV_JWT_SECRET and settings.app_env != "dev":
        logger.warning("[app] JWT_SECRET not set; using the development secret in %s", settings.app_env)
    database = database or Database(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.auto_create_tables:
            database.create_all()
        logger.info("[app] started (env=%s)", settings.app_env)
        try:
            yield
        finally:
            database.dispose()
            logger.info("[app] storage released")

    app = FastAPI(title="LinkPage API", lifespan=lifespan)

    repository = SQLRepository(database)
    app.state.settings = settings
    app.state.database = database
    app.state.page_service = PageService(repository)
    app.state.auth_service = AuthService(repository, settings)
    app.state.rate_limiter = RateLimiter()

    allowed_cors = {settings.public_base_url}
    if settings.app_env != "prod":
        allowed_cors.update(DEV_ORIGINS)
    allowed_cors = {origin for origin in allowed_cors if origin}
    if allowed_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=sorted(allowed_cors),
            allow_credentials=True,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["*"],
        )
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.app_env == "prod")

    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _body_error)
    app.add_exception_handler(Exception, _unhandled_error)

    app.include_router(auth_router.router)
    app.include_router(pages_router.router)
    return app
