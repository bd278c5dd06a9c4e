"""
FastAPI Application — Entry Point

Multi-tenant PDF ingestion service.

Architecture:
  - All business routes are versioned under /api/v1/
  - Tenant Registry (master `tenants` table) and per-tenant document schemas
    live behind two async SQLAlchemy engines (db/session.py)
  - Raw PDFs go to one S3 / MinIO bucket, keyed by tenant and date
  - Uniform JSON envelope on every response: {"success": ..., "data"/"error": ...}

Startup:
  1. Create the registry table if missing
  2. Ensure the upload bucket exists
  Either failure aborts startup.

Middleware stack (innermost → outermost):
  1. Request ID + logging — X-Request-ID header and one log line per request
  2. CORS — open in development only
"""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tenant_ingest.api.dependencies import get_object_store
from tenant_ingest.api.v1.tenants import router as tenants_router
from tenant_ingest.api.v1.upload import router as upload_router
from tenant_ingest.core.config import settings
from tenant_ingest.core.errors import ServiceError
from tenant_ingest.db.session import check_db_health, dispose_engines, registry_engine
from tenant_ingest.repositories.tenant_registry import TenantRegistry
from tenant_ingest.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

SERVICE_NAME = "pdf-ingestion-service"


# ---------------------------------------------------------------------------
# Application lifespan: startup / shutdown hooks
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Run on startup: create the registry schema and the upload bucket.
    Run on shutdown: dispose both connection pools.
    """
    logger.info(
        "Starting %s | env=%s bucket=%s ai_summaries=%s",
        SERVICE_NAME, settings.app_env, settings.s3_bucket, bool(settings.openai_api_key),
    )

    try:
        await TenantRegistry.init_schema(registry_engine)
    except Exception as exc:
        logger.critical("Registry initialisation failed at startup: %s", exc)
        raise RuntimeError(f"Registry unavailable: {exc}") from exc

    try:
        await get_object_store().ensure_bucket()
    except ServiceError as exc:
        logger.critical("Object store initialisation failed at startup: %s", exc.message)
        raise RuntimeError(f"Object store unavailable: {exc.message}") from exc

    logger.info("Registry: ready | Object store: ready")

    yield

    logger.info("Shutting down %s", SERVICE_NAME)
    await dispose_engines()


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------

def create_app() -> FastAPI:
    app = FastAPI(
        title="Multi-Tenant PDF Ingestion Service",
        description=(
            "Upload PDFs per tenant: text extraction, AI summaries, object storage "
            "and per-tenant document stores with soft delete and restore."
        ),
        version="1.0.0",
        docs_url="/api/docs" if not settings.is_production else None,
        redoc_url="/api/redoc" if not settings.is_production else None,
        openapi_url="/api/openapi.json" if not settings.is_production else None,
        lifespan=lifespan,
    )

    # ----------------------------------------------------------------
    # Middleware (applied in reverse order, last added = outermost)
    # ----------------------------------------------------------------

    if settings.app_env == "development":
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET", "POST", "DELETE"],
            allow_headers=["Content-Type", "X-Request-ID"],
            expose_headers=["X-Request-ID"],
        )

    @app.middleware("http")
    async def request_id_and_logging(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        start = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = request_id

        logger.info(
            "HTTP %s %s %d %.1fms | request_id=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request_id,
        )
        return response

    # ----------------------------------------------------------------
    # Exception handlers: uniform error envelope
    # ----------------------------------------------------------------

    @app.exception_handler(ServiceError)
    async def service_exception_handler(request: Request, exc: ServiceError):
        if exc.status_code >= 500:
            logger.error(
                "Request failed | path=%s code=%s error=%s",
                request.url.path, exc.error_code, exc.message,
            )
        else:
            logger.info(
                "Request rejected | path=%s status=%d code=%s error=%s",
                request.url.path, exc.status_code, exc.error_code, exc.message,
            )
        body = ErrorResponse(error=exc.message, error_code=exc.error_code, data=exc.details)
        return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Convert FastAPI request validation errors to the error envelope."""
        errors = [
            {
                "field":   " → ".join(str(loc) for loc in err["loc"]),
                "message": err["msg"],
            }
            for err in exc.errors()
        ]
        body = ErrorResponse(
            error="Request validation failed.",
            error_code="VALIDATION_ERROR",
            data={"errors": errors},
        )
        return JSONResponse(
            status_code=422,
            content=body.model_dump(mode="json"),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Catch-all for unhandled exceptions — never expose stack traces."""
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        logger.exception(
            "Unhandled exception | path=%s request_id=%s",
            request.url.path, request_id,
        )
        body = ErrorResponse(
            error="An unexpected error occurred.",
            error_code="INTERNAL_ERROR",
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=body.model_dump(mode="json"),
            headers={"X-Request-ID": request_id},
        )

    # ----------------------------------------------------------------
    # Routers
    # ----------------------------------------------------------------

    app.include_router(upload_router,  prefix="/api/v1")
    app.include_router(tenants_router, prefix="/api/v1")

    # ----------------------------------------------------------------
    # Health & readiness endpoints (used by load balancer / k8s)
    # ----------------------------------------------------------------

    @app.get(
        "/health",
        tags=["Operations"],
        summary="Liveness probe",
        description="Returns 200 if the process is alive. No external checks.",
    )
    async def health() -> dict:
        return {
            "status":    "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service":   SERVICE_NAME,
        }

    @app.get(
        "/ready",
        tags=["Operations"],
        summary="Readiness probe",
        description="Returns 200 only if the registry database is reachable.",
    )
    async def readiness() -> JSONResponse:
        db_status = await check_db_health()
        if db_status["status"] != "ok":
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "not_ready", "database": db_status},
            )
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content={"status": "ready", "database": db_status},
        )

    return app


# ---------------------------------------------------------------------------
# Application instance (imported by uvicorn)
# ---------------------------------------------------------------------------

app = create_app()


# ---------------------------------------------------------------------------
# Local development entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tenant_ingest.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.app_env == "development",
        log_level="debug" if settings.debug else "info",
        access_log=True,
    )
