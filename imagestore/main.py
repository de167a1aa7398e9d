"""
FastAPI application entry point.

This module creates and configures the FastAPI application.
Using an application factory pattern (create_app function) because:
- Easier to test with different configurations
- Explicit about initialization order

For local development:
    uvicorn imagestore.main:app --reload

For production:
    gunicorn imagestore.main:app -w 4 -k uvicorn.workers.UvicornWorker
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api.routes import health
from .config.settings import get_settings
from .infrastructure.storage.client import StorageProvider, create_storage_config
from .infrastructure.storage.errors import StorageError

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup builds the storage provider from settings (unless one was
    injected), initializes the client and, when S3_VERIFY_ON_STARTUP is
    set, aborts startup if the bucket is not reachable.
    """
    try:
        settings = get_settings()
        logging.getLogger().setLevel(settings.log_level.upper())

        logger.info(
            "imagestore API starting",
            extra={
                "version": __version__,
                "static_credentials": settings.uses_static_credentials,
            }
        )

        provider = getattr(app.state, "storage_provider", None)
        if provider is None:
            provider = StorageProvider(create_storage_config(settings))
            app.state.storage_provider = provider

        await provider.get_client()
        if settings.s3_verify_on_startup:
            await provider.verify_reachable()
    except StorageError as e:
        logger.error(
            "Storage initialization failed",
            extra={"error": str(e), "error_type": type(e).__name__}
        )
        raise

    yield

    # Shutdown
    logger.info("imagestore API shutting down")


def create_app(storage_provider: Optional[StorageProvider] = None) -> FastAPI:
    """
    Application factory.

    Pass storage_provider to use a pre-built provider (tests, scripts);
    otherwise the lifespan builds one from the environment.
    """
    try:
        settings = get_settings()
    except StorageError as e:
        logger.error("Invalid configuration", extra={"error": str(e)})
        raise

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="Object storage access for stored images.",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.storage_provider = storage_provider

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint - point at docs."""
        return {
            "message": settings.api_title,
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
        }

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """
        Catch-all exception handler.

        Logs the full error server-side but returns a generic message.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error. Please contact support if this persists."
            }
        )

    return app


# This is what uvicorn/gunicorn will import
app = create_app()


# For debugging/development
if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "imagestore.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
