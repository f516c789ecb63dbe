import logging
import time
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from starlette.middleware.gzip import GZipMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware

from jobsite.config import Settings, settings
from jobsite.api import endpoint, photos
from jobsite.api.dependencies import get_submission_service
from jobsite.core.logging import setup_logging
from jobsite.middleware.api_key import APIKeyMiddleware
from jobsite.middleware.logging import LoggingMiddleware
from jobsite.middleware.monitoring import MonitoringMiddleware
from jobsite.middleware.request_id import RequestIDMiddleware
from jobsite.middleware.security import SecurityHeadersMiddleware
from jobsite.monitoring import metrics
from jobsite.services.health_service import get_detailed_health
from jobsite.services.submission_service import SubmissionService

logger = logging.getLogger(__name__)


def create_app(config: Settings = settings) -> FastAPI:
    setup_logging(config.LOG_LEVEL)

    app = FastAPI(
        title=config.APP_NAME,
        description="""
    Spreadsheet-backed endpoint for jobsite field reports.

    * `GET /` returns the job sites and crew members for the form dropdowns
    * `POST /` with `action: "uploadPhoto"` stores one photo and returns its link
    * `POST /` with `action: "submitForm"` records a report referencing uploaded photos
    * `POST /` without `action` records a report with embedded photos
    """,
        version=config.APP_VERSION,
        openapi_tags=[
            {"name": "endpoint", "description": "Reference data and report submission"},
            {"name": "photos", "description": "Locally stored photos"},
            {"name": "monitoring", "description": "System monitoring"},
        ],
        docs_url="/docs",
        redoc_url="/redoc" if config.DEBUG else None,
    )

    # =====================================
    # Process Time Middleware
    # =====================================
    @app.middleware("http")
    async def add_process_time(request: Request, call_next):
        """Add request processing time to response headers"""
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time

        response.headers["X-Process-Time"] = f"{process_time:.3f}s"

        return response

    # =====================================
    # Configure Middleware Stack
    # =====================================

    # GZIP Compression (minimum 1KB)
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Trusted Host validation (production only)
    if not config.DEBUG:
        app.add_middleware(
            TrustedHostMiddleware,
            allowed_hosts=config.ALLOWED_HOSTS
        )

    # Browsers post reports as text/plain, so no preflight is needed for POST /
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Process-Time"],
        max_age=3600,
    )

    app.add_middleware(MonitoringMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(LoggingMiddleware)

    if config.REQUIRE_API_KEY:
        app.add_middleware(
            APIKeyMiddleware,
            api_keys=config.API_KEYS,
            exclude_paths=["/health", "/docs", "/redoc", "/openapi.json"]
        )

    # Outermost, so every log line below it carries the request id
    app.add_middleware(RequestIDMiddleware)

    # Include routers
    app.include_router(endpoint.router, tags=["endpoint"])
    app.include_router(photos.router, prefix="/photos", tags=["photos"])

    if config.EXPOSE_METRICS:
        app.include_router(
            metrics.router,
            prefix="/internal",
            tags=["monitoring"]
        )

    @app.get("/health", tags=["monitoring"])
    async def health_check():
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": config.APP_VERSION
        }

    @app.get("/health/detailed", tags=["monitoring"])
    async def detailed_health_check(service: SubmissionService = Depends(get_submission_service)):
        return await get_detailed_health(service)

    logger.info(f"{config.APP_NAME} {config.APP_VERSION} ready ({config.ENVIRONMENT}, storage={config.STORAGE_BACKEND})")
    return app


app = create_app()


def serve() -> None:
    import uvicorn
    uvicorn.run("jobsite.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)


if __name__ == "__main__":
    serve()
