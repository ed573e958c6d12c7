from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from .config import Settings, get_settings
from .errors import (
    CapacityExhausted,
    Expired,
    NotFound,
    PersistenceError,
    ShortLinkError,
    ValidationError,
)
from .logging_config import setup_logging, get_logger, set_request_id
from .routes import router
from .services import ResolutionService
from .tasks import BackgroundTaskRunner

logger = get_logger(__name__)

ERROR_STATUS = (
    (ValidationError, 400),
    (NotFound, 404),
    (Expired, 404),
    (CapacityExhausted, 503),
    (PersistenceError, 500),
)


def status_for(exc: ShortLinkError) -> int:
    for error_type, status in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status
    return 500


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Middleware to add request ID to each request for tracing."""
    
    async def dispatch(self, request: Request, call_next):
        rid = set_request_id(request.headers.get("X-Request-ID"))
        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[ResolutionService] = None,
) -> FastAPI:
    """
    Build the HTTP application.
    
    When no service is given, one is built from settings at start-up and
    closed at shutdown.
    """
    settings = settings or get_settings()
    
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {settings.APP_NAME}...")
        owns_service = app.state.service is None
        if owns_service:
            app.state.service = ResolutionService.from_settings(settings)
        
        runner = BackgroundTaskRunner(app.state.service, settings.CLEANUP_INTERVAL_SECONDS)
        runner.start()
        
        yield
        
        await runner.stop()
        if owns_service:
            app.state.service.close()
            app.state.service = None
        logger.info(f"Shutting down {settings.APP_NAME}...")
    
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Short links with click analytics",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url=None,
    )
    app.state.settings = settings
    app.state.service = service
    
    app.add_middleware(RequestIdMiddleware)
    
    if settings.CORS_ORIGINS == ["*"]:
        logger.warning("CORS configured to allow all origins. Set CORS_ORIGINS for production.")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type"],
    )
    
    @app.exception_handler(ShortLinkError)
    async def short_link_error_handler(request: Request, exc: ShortLinkError):
        status = status_for(exc)
        if status >= 500:
            logger.error(f"{exc.code} on {request.url.path}: {exc.message}")
        return JSONResponse(status_code=status, content={"error": exc.message, "code": exc.code})
    
    @app.exception_handler(Exception)
    async def server_error_handler(request: Request, exc: Exception):
        logger.error(f"Server error: {exc}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})
    
    app.include_router(router)
    return app


setup_logging(get_settings())
app = create_app()
