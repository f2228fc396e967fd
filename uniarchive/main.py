"""
University Archive - Backend API
FastAPI with two storage backends (SQLite and JSON files) and local PDF storage.

Run server:
uvicorn uniarchive.main:create_app --factory --host 0.0.0.0 --port 5000
"""

import contextvars
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .adapters import StorageUnavailable, build_storage_adapter
from .core.devices import is_mobile_device
from .core.file_store import LocalFileStore
from .core.seed import seed_semesters
from .core.stats_cache import StatsCache
from .routers import admin, browse, files, upload
from .settings import Settings, get_settings

# ========== Request Context for Tracing ==========
request_id_var = contextvars.ContextVar('request_id', default=None)
request_start_time_var = contextvars.ContextVar('request_start_time', default=None)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, storage=None) -> FastAPI:
    """
    Build the API.

    Args:
        settings: explicit settings (defaults to the environment singleton)
        storage: explicit storage adapter (defaults to STORAGE_BACKEND)
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="University Archive API",
        description="Semester / type / subject / year archive of PDF documents",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # ============================================================================
    # STORAGE
    # ============================================================================
    if storage is None:
        storage = build_storage_adapter(settings)

    if settings.seed_semesters:
        try:
            seed_semesters(storage)
        except StorageUnavailable as e:
            # the API still starts; /api/health reports the outage
            logger.error(f"✗ Could not seed semesters: {e}")

    app.state.settings = settings
    app.state.storage_backend = settings.storage_backend.lower()
    app.state.storage_adapter = storage
    app.state.file_store = LocalFileStore(settings.upload_dir)
    app.state.stats_cache = StatsCache(ttl=settings.stats_cache_ttl)

    # ========== Request Tracing Middleware ==========
    @app.middleware("http")
    async def request_tracing_middleware(request: Request, call_next):
        """Add request_id and timing to all requests."""
        request_id = str(uuid.uuid4())[:8]
        request_id_var.set(request_id)
        request_start_time_var.set(time.time())

        response = await call_next(request)

        latency = time.time() - request_start_time_var.get()
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"({round(latency * 1000, 2)} ms)",
            extra={"request_id": request_id},
        )

        response.headers["X-Request-ID"] = request_id
        return response

    allowed_origins = settings.get_origins_list()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials="*" not in allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "Content-Range",
            "Accept-Ranges",
            "Content-Length",
            "Content-Disposition",
            "X-Suggested-Filename",
            "X-Request-ID",
        ],
    )

    @app.exception_handler(StorageUnavailable)
    async def storage_unavailable_handler(request: Request, exc: StorageUnavailable):
        logger.error(f"Storage unavailable on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Database not connected", "status": "Service Unavailable"},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    # ============================================================================
    # ENDPOINTS
    # ============================================================================
    @app.get("/api/health")
    def health_check(request: Request):
        """Health check endpoint"""
        user_agent = request.headers.get("user-agent") or "Unknown"
        body = {
            "status": "OK",
            "message": "Server is running",
            "database": "Connected",
            "backend": app.state.storage_backend,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "userAgent": user_agent,
            "isMobile": is_mobile_device(user_agent),
        }
        try:
            app.state.storage_adapter.ping()
        except StorageUnavailable as e:
            logger.error(f"Health check failed: {str(e)}")
            body.update(status="DEGRADED", database="Disconnected")
            return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)
        return body

    @app.get("/")
    def root():
        return {
            "message": "University Archive API",
            "docs": "/docs",
            "health": "/api/health",
        }

    app.include_router(browse.router)
    app.include_router(files.router)
    app.include_router(upload.router)
    app.include_router(admin.router)

    @app.on_event("startup")
    async def startup_event():
        logger.info("🚀 University Archive API starting up...")
        logger.info(f"Storage Backend: {app.state.storage_backend.upper()}")
        logger.info(f"Upload directory: {settings.upload_dir} (max {settings.max_upload_mb} MB)")
        logger.info(f"Allowed origins: {allowed_origins}")

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("University Archive API shutting down...")
        engine = getattr(app.state.storage_adapter, "engine", None)
        if engine is not None:
            engine.dispose()

    return app


if __name__ == "__main__":
    import uvicorn

    s = get_settings()
    uvicorn.run("uniarchive.main:create_app", factory=True, host=s.host, port=s.port, log_level="info")
