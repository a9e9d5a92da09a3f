"""FastAPI application factory."""

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from api import middleware
from api.exception_handlers import (
    api_http_exception_handler,
    api_validation_exception_handler,
    store_unavailable_exception_handler,
)
from api.lifespan import lifespan
from db.config import settings
from db.exceptions import StoreUnavailable
from utils import const


def create_app(use_lifespan: bool = True) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        use_lifespan: Connect to the stores and start the scheduler on startup.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title=settings.app_name,
        description=settings.description,
        version=settings.version,
        lifespan=lifespan if use_lifespan else None,
    )

    # Exception handlers: wrap 4xx as HTTP 200 for /api/v1/* paths so that
    # reverse proxies (e.g. Traefik) don't replace the response body.
    app.add_exception_handler(HTTPException, api_http_exception_handler)
    app.add_exception_handler(RequestValidationError, api_validation_exception_handler)
    app.add_exception_handler(StoreUnavailable, store_unavailable_exception_handler)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_cors_header(request: Request, call_next):
        response = await call_next(request)
        response.headers.update(const.CORS_HEADERS)
        return response

    app.add_middleware(middleware.TimingMiddleware)
    app.add_middleware(middleware.SecureLoggingMiddleware)

    _register_routers(app)

    return app


def _register_routers(app: FastAPI) -> None:
    """Register all API routers.

    Args:
        app: FastAPI application instance.
    """
    # Import routers here to avoid circular imports
    from api.routers import get_router

    app.include_router(get_router())
