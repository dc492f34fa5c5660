"""Upload ingestion: multipart parsing, processor hand-off and record creation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from starlette.datastructures import FormData, UploadFile

from models.video import Video
from services.errors import BadRequest
from services.media_processor import MediaProcessor, select_processing_mode
from services.video_store import NewVideoRecord, VideoStore

logger = logging.getLogger(__name__)


@dataclass
class UploadSubmission:
    """Multipart upload fields after validation."""

    file: UploadFile
    title: str
    description: Optional[str]
    original_size: Optional[int]


def _form_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, UploadFile):
        return None
    return str(value)


def _parse_original_size(raw: Optional[str]) -> Optional[int]:
    if raw is None or not raw.strip():
        return None
    try:
        size = int(raw.strip())
    except ValueError as exc:
        raise BadRequest("originalSize must be an integer byte count") from exc
    if size <= 0:
        raise BadRequest("originalSize must be greater than zero")
    return size


def parse_upload_form(form: FormData) -> UploadSubmission:
    """Validate the multipart fields of a video upload."""
    file = form.get("file")
    if not isinstance(file, UploadFile):
        raise BadRequest("File not found")

    title = (_form_text(form.get("title")) or "").strip()
    if not title:
        raise BadRequest("Title is required")

    description = _form_text(form.get("description"))
    return UploadSubmission(
        file=file,
        title=title,
        description=description if description else None,
        original_size=_parse_original_size(_form_text(form.get("originalSize"))),
    )


async def read_upload_bytes(file: UploadFile) -> bytes:
    try:
        data = await file.read()
    finally:
        await file.close()
    if not data:
        raise BadRequest("Uploaded file is empty")
    return data


async def ingest_video(
    submission: UploadSubmission,
    *,
    processor: MediaProcessor,
    store: VideoStore,
    principal_id: Optional[str] = None,
) -> Video:
    """Forward the payload to the processor, then persist exactly one record.

    The record is written only after the processor responds, so a processor
    failure leaves the store untouched. For eager uploads the descriptor
    returned immediately is persisted; the background derived encoding is
    not awaited.
    """
    data = await read_upload_bytes(submission.file)
    mode = select_processing_mode(len(data))
    logger.info(
        "video_upload user=%s size=%s mode=%s title=%r",
        principal_id,
        len(data),
        mode.value,
        submission.title,
    )

    processed = await processor.process_video(data, mode)

    return await store.create_record(
        NewVideoRecord(
            title=submission.title,
            description=submission.description,
            public_id=processed.public_id,
            original_size=submission.original_size or len(data),
            compressed_size=processed.bytes,
            duration=processed.duration or 0.0,
            uploaded_by=principal_id,
        )
    )


async def ingest_image(file: Any, *, processor: MediaProcessor) -> str:
    """Upload an image for social-format rendering and return its public id."""
    if not isinstance(file, UploadFile):
        raise BadRequest("File not found")
    content_type = (file.content_type or "").lower()
    if content_type and not content_type.startswith("image/"):
        raise BadRequest("Please upload an image file")
    data = await read_upload_bytes(file)
    processed = await processor.upload_image(data)
    return processed.public_id
