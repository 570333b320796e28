from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.logger import setup_logging
from app.cache.cache_service import redis_cache
from app.middleware.cors import configure_cors
from app.middleware.logging import RequestLoggerMiddleware
from app.middleware.auth import JWTMiddleware
from app.middleware import error_handler
from app.services.channel_manager import channel_manager

# Routers
from app.routers import auth as auth_router
from app.routers import connections as connections_router
from app.routers import sessions as sessions_router
from app.routers import remote_ws as remote_ws_router
from app.routers import health as health_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("%s backend starting (env=%s)", settings.APP_NAME, settings.ENV)
    yield
    # Open viewer channels still hold active sessions
    await channel_manager.close_all()
    await redis_cache.close()
    logger.info("%s backend stopped", settings.APP_NAME)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""
    setup_logging()
    description = (
        f"{settings.APP_NAME} Backend API.\n\n"
        "This service manages saved remote desktop connections, tracks remote sessions "
        "and serves the live viewer channel over WebSocket."
    )

    openapi_tags = [
        {"name": "authentication", "description": "Endpoints to register, login, refresh and logout."},
        {"name": "connections", "description": "Saved remote desktop connections of the current user."},
        {"name": "sessions", "description": "Remote session history, active sessions and termination."},
        {"name": "remote-ws", "description": "Live viewer channel (WebSocket at /ws)."},
        {"name": "health", "description": "Health checks and service status endpoints."},
    ]

    app = FastAPI(
        title=f"{settings.APP_NAME} Backend API",
        version="0.1.0",
        description=description,
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )

    # Middleware
    configure_cors(app)
    app.add_middleware(RequestLoggerMiddleware)
    app.add_middleware(JWTMiddleware)

    # Exception handlers
    app.add_exception_handler(StarletteHTTPException, error_handler.http_exception_handler)
    app.add_exception_handler(RequestValidationError, error_handler.validation_exception_handler)
    app.add_exception_handler(Exception, error_handler.unhandled_exception_handler)

    # Include routers
    app.include_router(health_router.router)
    app.include_router(auth_router.router)
    app.include_router(connections_router.router)
    app.include_router(sessions_router.router)
    app.include_router(remote_ws_router.router)

    return app


app = create_app()
