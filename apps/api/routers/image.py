"""
Image upload and social share format endpoints.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from config import require_cloudinary_credentials
from routers.auth_scope import AuthContext, get_auth_context
from routers.video import get_media_processor
from services.errors import MediaGalleryError
from services.ingestion import ingest_image
from services.media_processor import MediaProcessor
from services.social_formats import render_social_formats

router = APIRouter()
logger = logging.getLogger(__name__)


class ImageUploadResponse(BaseModel):
    public_id: str


class SocialFormatResponse(BaseModel):
    name: str
    width: int
    height: int
    aspect_ratio: str
    url: str
    download_filename: str


@router.post("/image-upload", response_model=ImageUploadResponse)
async def upload_image(
    request: Request,
    auth: AuthContext = Depends(get_auth_context),
    processor: MediaProcessor = Depends(get_media_processor),
):
    """Upload an image so it can be rendered in social media formats."""
    form = await request.form()
    try:
        public_id = await ingest_image(form.get("file"), processor=processor)
    except MediaGalleryError:
        raise
    except Exception as exc:
        logger.exception("Error in image-upload route: %s", exc)
        raise MediaGalleryError("Image upload route error") from exc
    finally:
        await form.close()

    logger.info("image_upload user=%s public_id=%s", auth.user_id, public_id)
    return ImageUploadResponse(public_id=public_id)


@router.get("/image-formats/{public_id:path}", response_model=List[SocialFormatResponse])
async def list_image_formats(
    public_id: str,
    _auth: AuthContext = Depends(get_auth_context),
):
    """Delivery URLs for every social format preset of an uploaded image."""
    cloud_name, _, _ = require_cloudinary_credentials()
    return render_social_formats(public_id, cloud_name)
