"""Main FastAPI application for the irrigation management backend."""
import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from config import Settings, load_settings
from database import Database
from document_store import DocumentStore
from error_handler import ConfigurationMissingError, register_exception_handlers
from health_service import HealthService
from routers import auth as auth_router
from routers import health as health_router
from routers import records as records_router
from routers import system as system_router

logger = logging.getLogger(__name__)


def create_app(settings: Settings, database: Optional[Database] = None) -> FastAPI:
    """
    Build the application around explicit settings.

    Args:
        settings: Loaded configuration
        database: Database to use instead of one built from ``settings``

    Returns:
        Configured FastAPI application
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    database = database or Database(settings.sqlalchemy_url)
    store = DocumentStore(database)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup and shutdown events."""
        logger.info("Starting irrigation backend...")
        database.create_all()
        yield
        logger.info("Shutting down irrigation backend...")
        database.dispose()
        logger.info("Database connections closed")

    production = settings.environment == "production"
    app = FastAPI(
        title="Irrigation Management API",
        description="""
    Backend for irrigation management:
    - Pumps, zones and irrigation schedules
    - Water usage records
    - Notifications and their subscribers
    - User accounts, preferences and sessions

    ## Documentation
    - OpenAPI/Swagger: `/docs` (disabled in production)
    """,
        version="1.0.0",
        lifespan=lifespan,
        docs_url=None if production else "/docs",
        redoc_url=None if production else "/redoc",
        openapi_url=None if production else "/openapi.json",
    )
    app.state.settings = settings
    app.state.database = database
    app.state.store = store
    app.state.health_service = HealthService(store)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info(f"{request.method} {request.url.path}")
        return await call_next(request)

    register_exception_handlers(app, settings.environment)

    app.include_router(system_router.router)
    app.include_router(health_router.router)
    app.include_router(auth_router.router, prefix=settings.api_v1_prefix)
    for router in records_router.routers:
        app.include_router(router, prefix=settings.api_v1_prefix)

    return app


if __name__ == "__main__":
    import uvicorn

    try:
        settings = load_settings()
    except ConfigurationMissingError as e:
        logging.basicConfig(level=logging.ERROR)
        logger.error(f"Failed to start server: {e}")
        sys.exit(1)

    uvicorn.run(
        create_app(settings),
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower()
    )
