"""
Video upload and listing endpoints.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from config import require_cloudinary_credentials, settings
from database import get_db
from models.video import Video
from routers.auth_scope import AuthContext, get_auth_context
from services.errors import MediaGalleryError, QueryError
from services.ingestion import ingest_video, parse_upload_form
from services.media_processor import CloudinaryMediaProcessor, MediaProcessor, video_download_url
from services.video_store import SqlAlchemyVideoStore, VideoStore

router = APIRouter()
logger = logging.getLogger(__name__)


class VideoResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    remote_asset_id: str
    original_size_bytes: int
    processed_size_bytes: int
    duration_seconds: float
    created_at: Optional[str] = None
    download_url: Optional[str] = None


def get_media_processor() -> MediaProcessor:
    """Build a processor per request; missing credentials fail before the body is read."""
    cloud_name, api_key, api_secret = require_cloudinary_credentials()
    return CloudinaryMediaProcessor(
        cloud_name,
        api_key,
        api_secret,
        video_folder=settings.CLOUDINARY_VIDEO_FOLDER,
        image_folder=settings.CLOUDINARY_IMAGE_FOLDER,
    )


def get_video_store(db: AsyncSession = Depends(get_db)) -> VideoStore:
    return SqlAlchemyVideoStore(db)


def _isoformat_utc(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    # SQLite returns naive values for timezone-aware columns.
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def serialize_video(video: Video) -> VideoResponse:
    return VideoResponse(
        id=video.id,
        title=video.title,
        description=video.description,
        remote_asset_id=video.public_id,
        original_size_bytes=int(video.original_size or 0),
        processed_size_bytes=int(video.compressed_size or 0),
        duration_seconds=float(video.duration or 0.0),
        created_at=_isoformat_utc(video.created_at),
        download_url=video_download_url(video.public_id, settings.CLOUDINARY_CLOUD_NAME),
    )


@router.post("/video-upload", response_model=VideoResponse)
async def upload_video(
    request: Request,
    auth: AuthContext = Depends(get_auth_context),
    processor: MediaProcessor = Depends(get_media_processor),
    store: VideoStore = Depends(get_video_store),
):
    """Upload a video to the media processor and record its metadata."""
    form = await request.form()
    try:
        submission = parse_upload_form(form)
        video = await ingest_video(
            submission,
            processor=processor,
            store=store,
            principal_id=auth.user_id,
        )
    except MediaGalleryError:
        raise
    except Exception as exc:
        logger.exception("Error in video-upload route: %s", exc)
        raise MediaGalleryError("Video upload route error") from exc
    finally:
        await form.close()

    return serialize_video(video)


@router.get("/video", response_model=List[VideoResponse])
async def list_videos(store: VideoStore = Depends(get_video_store)):
    """All uploaded videos, newest first."""
    try:
        videos = await store.list_records()
    except MediaGalleryError:
        raise
    except Exception as exc:
        logger.exception("Error in video listing route: %s", exc)
        raise QueryError("Something went wrong in fetching /video") from exc
    return [serialize_video(video) for video in videos]
