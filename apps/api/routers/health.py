"""
Health check endpoints.
"""

import logging
from typing import List

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config import settings

logger = logging.getLogger(__name__)

router = APIRouter()

MEDIA_PROCESSOR_KEYS = ("CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET")


def missing_media_processor_keys() -> List[str]:
    return [key for key in MEDIA_PROCESSOR_KEYS if not getattr(settings, key)]


async def probe_database() -> str:
    from database import engine

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("Metadata store probe failed: %s", e)
        return f"down: {e}"
    return "up"


@router.get("/health")
async def health_check():
    """
    Overall service health.
    Degraded when the metadata store cannot be reached.
    """
    database = await probe_database()
    return {
        "status": "healthy" if database == "up" else "degraded",
        "api": "up",
        "database": database,
        "media_processor": "missing" if missing_media_processor_keys() else "configured",
    }


@router.get("/health/ready")
async def readiness_check():
    """Readiness probe: uploads need every media processor credential."""
    missing = missing_media_processor_keys()
    if missing:
        return JSONResponse(status_code=503, content={"ready": False, "missing": missing})
    return {"ready": True}


@router.get("/health/live")
async def liveness_check():
    return {"alive": True}
