"""Main FastAPI application"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from datetime import datetime
from pathlib import Path
from typing import Optional
import logging
import traceback
import time
import uuid

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi.responses import Response

from fadtrack.config import settings
from fadtrack.core.database import Database
from fadtrack.core.exceptions import BaseAPIException
from fadtrack.core.storage import FileStorage
from fadtrack.schemas.response import ErrorResponse
from fadtrack.api.v1 import auth, users, areas, photos, comparison_groups, program_info, fad, admin

# Configure logging - ensure log directory exists
_log_dir = Path(settings.get_log_file()).parent
_log_dir.mkdir(parents=True, exist_ok=True)
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(settings.get_log_file()),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger(__name__)

REQUEST_COUNT = Counter(
    "fadtrack_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "fadtrack_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)


def _error_body(request: Request, message: str, code: str, details=None) -> dict:
    return ErrorResponse(
        error=message,
        code=code,
        details=details,
        path=request.url.path,
    ).model_dump()


def _bootstrap_admin(database: Database) -> None:
    """Create the configured admin account if it does not exist yet"""
    from fadtrack.services.user_service import user_service
    from fadtrack.schemas.user import UserCreate, UserRole

    db = database.session()
    try:
        admin_user = user_service.get_user_by_username(db, settings.ADMIN_USERNAME)
        if not admin_user:
            user_service.create_user(
                db,
                UserCreate(
                    username=settings.ADMIN_USERNAME,
                    password=settings.ADMIN_PASSWORD,
                    role=UserRole.ADMIN
                )
            )
            logger.info(f"Created admin user: {settings.ADMIN_USERNAME}")
    finally:
        db.close()


def create_app(
    database: Optional[Database] = None,
    storage: Optional[FileStorage] = None,
    init_mode: Optional[str] = None,
) -> FastAPI:
    """
    Build the application around an explicit store connection and file storage

    Args:
        database: Store connection; built from settings when omitted
        storage: Upload storage; ``UPLOAD_DIR/UPLOAD_SUBDIR`` when omitted
        init_mode: Overrides ``DB_INIT_MODE``
    """
    database = database or Database.from_settings(settings)
    storage = storage or FileStorage(settings.get_photo_dir(), settings.get_photo_url_prefix())

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        docs_url="/api/docs" if settings.DEBUG else None,
        redoc_url="/api/redoc" if settings.DEBUG else None
    )
    app.state.database = database
    app.state.storage = storage

    # GZip compression for large responses
    app.add_middleware(GZipMiddleware, minimum_size=500)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Security headers + request timing middleware
    @app.middleware("http")
    async def add_headers_and_timing(request: Request, call_next):
        """Add security headers and log slow requests"""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        start = time.time()
        response = await call_next(request)
        duration = time.time() - start

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["X-Request-ID"] = request_id

        route = request.scope.get("route")
        path = getattr(route, "path", request.url.path)
        REQUEST_COUNT.labels(request.method, path, str(response.status_code)).inc()
        REQUEST_LATENCY.labels(request.method, path).observe(duration)

        if duration > 1.0:
            logger.warning(
                "Slow request: %s %s took %.2fs request_id=%s",
                request.method,
                request.url.path,
                duration,
                request_id,
            )

        return response

    # Exception handlers
    @app.exception_handler(BaseAPIException)
    async def api_exception_handler(request: Request, exc: BaseAPIException):
        """Handle custom API exceptions"""
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            f"API Exception [{exc.code}]: {exc.message}",
            extra={
                "status_code": exc.status_code,
                "details": exc.details,
                "path": request.url.path,
                "method": request.method
            }
        )

        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, exc.message, exc.code, exc.details),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle Pydantic validation errors"""
        errors = []
        for error in exc.errors():
            errors.append({
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"]
            })

        logger.warning(
            f"Validation error: {errors}",
            extra={"path": request.url.path, "method": request.method}
        )

        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=_error_body(request, "Validation failed", "VALIDATION_FAILED", {"errors": errors}),
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError):
        """Handle database errors"""
        logger.error(
            f"Database error: {str(exc)}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "traceback": traceback.format_exc()
            }
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(request, "A database error occurred. Please try again later.", "DATABASE_ERROR"),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle all other exceptions"""
        logger.critical(
            f"Unhandled exception: {str(exc)}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "traceback": traceback.format_exc()
            }
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(request, "An unexpected error occurred.", "INTERNAL_ERROR"),
        )

    # Startup event
    @app.on_event("startup")
    async def startup_event():
        """Open the store, check the schema, prepare storage and the admin account"""
        settings.validate_security_settings()
        logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
        logger.info(f"Environment: {settings.ENVIRONMENT}")

        try:
            database.open()
            database.init(init_mode or settings.DB_INIT_MODE, require_head=settings.DB_REQUIRE_HEAD)
            logger.info("Database initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize database: {e}")
            raise

        storage.ensure_root()
        _bootstrap_admin(database)

    # Shutdown event
    @app.on_event("shutdown")
    async def shutdown_event():
        """Cleanup on shutdown"""
        database.close()
        logger.info(f"Shutting down {settings.APP_NAME}")

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        db_ok = True
        db_error = None
        try:
            database.ping()
        except (SQLAlchemyError, RuntimeError) as exc:
            db_ok = False
            db_error = str(exc)

        return {
            "status": "healthy" if db_ok else "degraded",
            "version": settings.APP_VERSION,
            "timestamp": datetime.utcnow().isoformat(),
            "readiness": {
                "database": {"ok": db_ok, "error": db_error},
            },
        }

    @app.get("/metrics")
    async def metrics():
        """Prometheus metrics endpoint."""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Root endpoint
    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "status": "running",
            "docs": "/api/docs" if settings.DEBUG else "disabled"
        }

    # Include routers
    app.include_router(auth.router, prefix="/api/v1/auth", tags=["Authentication"])
    app.include_router(users.router, prefix="/api/v1/users", tags=["Users"])
    app.include_router(areas.router, prefix="/api/v1/areas", tags=["Areas"])
    app.include_router(photos.router, prefix="/api/v1/photos", tags=["Photos"])
    app.include_router(comparison_groups.router, prefix="/api/v1/comparison-groups", tags=["Comparison groups"])
    app.include_router(program_info.router, prefix="/api/v1/program-info", tags=["Program info"])
    app.include_router(fad.router, prefix="/api/v1", tags=["FAD"])
    app.include_router(admin.router, prefix="/api/v1/admin", tags=["Admin"])

    # Uploaded images are public static files
    app.mount(storage.url_prefix, StaticFiles(directory=str(storage.root), check_dir=False), name="uploads")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "fadtrack.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=1 if settings.DEBUG else settings.WORKERS
    )
