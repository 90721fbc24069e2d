"""
Recipedium Backend Service - Main API Server
Application factory, logging setup and error rendering
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import structlog
import time
from typing import AsyncGenerator, Optional

from core.config import settings
from core.database import Database
from core.exceptions import RecipediumError, ValidationError, pydantic_errors_to_fields
from api.routes import api_router
from middleware.logging import LoggingMiddleware, get_request_id
from utils.rate_limiter import rate_limiter


def configure_logging() -> None:
    """Configure structlog from LOG_LEVEL and LOG_FORMAT"""
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.LOG_FORMAT == "json"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.LOG_LEVEL)
        ),
        logger_factory=structlog.WriteLoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events"""
    # Startup
    logger.info("Starting Recipedium API", environment=settings.ENVIRONMENT)

    database: Database = app.state.database
    try:
        await database.connect()
        logger.info("Database connection established")
    except Exception as e:
        # Requests retry the connection lazily and answer 503 until it succeeds
        logger.error("Failed to initialize database", error=str(e))

    yield

    # Shutdown
    logger.info("Shutting down Recipedium API")
    await database.dispose()
    await rate_limiter.close()
    logger.info("Recipedium API shutdown complete")


async def recipedium_error_handler(request: Request, exc: RecipediumError):
    if exc.status_code >= 500:
        logger.error("Request failed", path=request.url.path, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError):
    error = ValidationError(pydantic_errors_to_fields(exc.errors()))
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(status_code=exc.status_code, content={"msg": message}, headers=exc.headers)


async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.exception(
        "Unhandled exception",
        exception=str(exc),
        path=request.url.path,
        method=request.method
    )
    content = {"msg": "Server Error", "request_id": get_request_id() or None}
    if settings.DEBUG:
        content["error"] = str(exc)
    return JSONResponse(status_code=500, content=content)


def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Build the application around a database handle

    Args:
        database: Handle to use; defaults to one built from settings
    """
    if database is None:
        database = Database(
            settings.database_url_async,
            echo=settings.DEBUG and settings.is_development,
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
            pool_timeout=settings.DATABASE_POOL_TIMEOUT,
            auto_create=settings.DATABASE_AUTO_CREATE,
        )

    app = FastAPI(
        title="Recipedium API",
        description="Recipe sharing: accounts, recipes, likes and comments",
        version=settings.VERSION,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan
    )
    app.state.database = database

    # CORS Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Process-Time", "X-Request-ID"]
    )

    # Custom Middleware
    app.add_middleware(LoggingMiddleware)

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        """Add response time header"""
        start_time = time.time()
        response = await call_next(request)
        response.headers["X-Process-Time"] = str(round(time.time() - start_time, 4))
        return response

    app.add_exception_handler(RecipediumError, recipedium_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "service": settings.APP_NAME,
            "version": settings.VERSION,
            "environment": settings.ENVIRONMENT,
            "docs": "/docs" if not settings.is_production else None,
        }

    app.include_router(api_router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development,
        log_config=None  # Use structlog instead
    )
