"""
Media Gallery - FastAPI Backend
Main application entry point with upload, listing and access gate wiring.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings, validate_security_settings
from database import engine, Base
import models  # noqa: F401
from routers import health, auth, video, image
from routers.access_gate import AccessGateMiddleware
from services.access_policy import AccessPolicy
from services.errors import MediaGalleryError

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    """Initialize logging once for the service."""
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=settings.LOG_LEVEL.upper(),
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    print("🚀 Starting Media Gallery API...")
    validate_security_settings()
    if settings.AUTO_CREATE_DB_SCHEMA:
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            print("🗄️ Database schema verified.")
        except Exception as e:
            print(f"⚠️ Database bootstrap skipped: {e}")
    if not settings.CLOUDINARY_CLOUD_NAME:
        print("⚠️ Cloudinary is not configured; uploads will fail until credentials are set.")
    yield
    # Shutdown
    await engine.dispose()
    print("👋 Shutting down API...")


async def media_gallery_error_handler(request: Request, exc: MediaGalleryError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.critical("Unhandled exception for request %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "An internal server error occurred."})


def create_app(access_policy: Optional[AccessPolicy] = None) -> FastAPI:
    """Create a FastAPI instance with routers, error handlers and the access gate."""
    _configure_logging()
    application = FastAPI(
        title="Media Gallery API",
        description="Upload, process and browse videos and images",
        version="0.1.0",
        lifespan=lifespan,
    )

    application.add_exception_handler(MediaGalleryError, media_gallery_error_handler)
    application.add_exception_handler(Exception, unhandled_exception_handler)

    # The gate runs inside CORS so preflight requests are answered first.
    application.add_middleware(AccessGateMiddleware, policy=access_policy)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    application.include_router(health.router, tags=["Health"])
    application.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
    application.include_router(video.router, prefix="/api", tags=["Video"])
    application.include_router(image.router, prefix="/api", tags=["Image"])

    @application.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": "Media Gallery API",
            "version": "0.1.0",
            "status": "running"
        }

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.API_HOST, port=settings.API_PORT, reload=False)
