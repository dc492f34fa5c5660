"""Remote media processor (Cloudinary) adapter and processing-mode selection."""

from __future__ import annotations

import asyncio
import io
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Protocol

import cloudinary.uploader
from cloudinary.utils import cloudinary_url

from services.errors import UpstreamProcessingError

logger = logging.getLogger(__name__)

LARGE_UPLOAD_THRESHOLD_BYTES = 40 * 1024 * 1024  # 40 MB

INLINE_VIDEO_TRANSFORMATION = [{"quality": "auto", "fetch_format": "mp4"}]
EAGER_VIDEO_TRANSFORMATION = [{"quality": "auto", "format": "mp4", "video_codec": "h264"}]


class ProcessingMode(str, Enum):
    INLINE = "inline"
    EAGER = "eager"


def select_processing_mode(size_bytes: int) -> ProcessingMode:
    """Uploads above the threshold are normalized in the background."""
    if size_bytes > LARGE_UPLOAD_THRESHOLD_BYTES:
        return ProcessingMode.EAGER
    return ProcessingMode.INLINE


@dataclass
class ProcessedAsset:
    """Descriptor returned by the processor for one uploaded asset."""

    public_id: str
    bytes: int
    duration: float = 0.0
    resource_type: str = "video"
    secure_url: Optional[str] = None
    eager_pending: bool = False


class MediaProcessor(Protocol):
    async def process_video(self, data: bytes, mode: ProcessingMode) -> ProcessedAsset:
        ...

    async def upload_image(self, data: bytes) -> ProcessedAsset:
        ...


def _safe_int(value: Any, default: int = 0) -> int:
    try:
        return max(int(float(value)), 0)
    except (TypeError, ValueError):
        return default


def _safe_float(value: Any, default: float = 0.0) -> float:
    try:
        return max(float(value), 0.0)
    except (TypeError, ValueError):
        return default


def _to_processed_asset(result: Dict[str, Any], *, eager_pending: bool = False) -> ProcessedAsset:
    public_id = str(result.get("public_id") or "").strip()
    if not public_id:
        raise UpstreamProcessingError("Media processor response is missing public_id")
    return ProcessedAsset(
        public_id=public_id,
        bytes=_safe_int(result.get("bytes")),
        duration=_safe_float(result.get("duration")),
        resource_type=str(result.get("resource_type") or "video"),
        secure_url=result.get("secure_url"),
        eager_pending=eager_pending,
    )


class CloudinaryMediaProcessor:
    """Uploads raw bytes to Cloudinary with per-call credentials."""

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        *,
        video_folder: str = "video-uploads",
        image_folder: str = "image-uploads",
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.video_folder = video_folder
        self.image_folder = image_folder

    def _credentials(self) -> Dict[str, str]:
        return {
            "cloud_name": self.cloud_name,
            "api_key": self.api_key,
            "api_secret": self.api_secret,
        }

    def video_upload_options(self, mode: ProcessingMode) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "folder": self.video_folder,
            "resource_type": "video",
        }
        if mode is ProcessingMode.EAGER:
            options["eager"] = EAGER_VIDEO_TRANSFORMATION
            options["eager_async"] = True
        else:
            options["transformation"] = INLINE_VIDEO_TRANSFORMATION
        return options

    async def _upload(self, data: bytes, options: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return await asyncio.to_thread(
                cloudinary.uploader.upload,
                io.BytesIO(data),
                **options,
                **self._credentials(),
            )
        except Exception as exc:
            logger.exception("Cloudinary upload failed (folder=%s): %s", options.get("folder"), exc)
            raise UpstreamProcessingError("Media processor upload failed") from exc

    async def process_video(self, data: bytes, mode: ProcessingMode) -> ProcessedAsset:
        result = await self._upload(data, self.video_upload_options(mode))
        asset = _to_processed_asset(result, eager_pending=mode is ProcessingMode.EAGER)
        logger.info(
            "Cloudinary video upload mode=%s public_id=%s bytes=%s",
            mode.value,
            asset.public_id,
            asset.bytes,
        )
        return asset

    async def upload_image(self, data: bytes) -> ProcessedAsset:
        options = {"folder": self.image_folder, "resource_type": "image"}
        result = await self._upload(data, options)
        return _to_processed_asset(result)


def video_download_url(public_id: str, cloud_name: str) -> Optional[str]:
    """Delivery URL for the mp4 rendition of an uploaded video."""
    if not cloud_name or not public_id:
        return None
    url, _ = cloudinary_url(
        public_id,
        resource_type="video",
        format="mp4",
        secure=True,
        cloud_name=cloud_name,
    )
    return url
