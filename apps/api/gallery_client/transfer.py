"""Media transfer client: local validation, multipart upload and progress reporting."""

from __future__ import annotations

import io
import logging
import mimetypes
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO, Callable, Dict, Iterator, List, Optional

import httpx

from gallery_client.errors import TransportError, UploadValidationError

logger = logging.getLogger(__name__)

MAX_FILE_SIZE_BYTES = 70 * 1024 * 1024  # 70 MB
MAX_FILE_SIZE_MB = MAX_FILE_SIZE_BYTES // (1024 * 1024)
SUCCESS_REDIRECT_DELAY_SECONDS = 2.0
UPLOAD_PATH = "/api/video-upload"
LANDING_PATH = "/home"
UPLOAD_FAILED_MESSAGE = "Failed to upload video. Please try again."


@dataclass
class SelectedFile:
    """A user-selected file and the metadata the browser would report for it."""

    name: str
    size: int
    content_type: str
    opener: Callable[[], BinaryIO]

    @classmethod
    def from_path(cls, path: str | Path, content_type: Optional[str] = None) -> "SelectedFile":
        file_path = Path(path)
        guessed, _ = mimetypes.guess_type(file_path.name)
        return cls(
            name=file_path.name,
            size=file_path.stat().st_size,
            content_type=content_type or guessed or "application/octet-stream",
            opener=lambda: file_path.open("rb"),
        )

    @classmethod
    def from_bytes(cls, name: str, data: bytes, content_type: str) -> "SelectedFile":
        return cls(name=name, size=len(data), content_type=content_type, opener=lambda: io.BytesIO(data))

    def open(self) -> BinaryIO:
        return self.opener()


def validate_submission(file: Optional[SelectedFile], title: str) -> None:
    """Reject a submission locally, before any request is sent."""
    if file is None:
        raise UploadValidationError("Please select a video file")
    if file.size > MAX_FILE_SIZE_BYTES:
        raise UploadValidationError(f"File too large. Maximum size is {MAX_FILE_SIZE_MB}MB")
    if not (title or "").strip():
        raise UploadValidationError("Please enter a title for your video")


def accept_dropped_file(file: SelectedFile, expected_kind: str = "video") -> SelectedFile:
    if not (file.content_type or "").lower().startswith(f"{expected_kind}/"):
        raise UploadValidationError(f"Please upload a {expected_kind} file")
    return file


class ProgressTracker:
    """Upload percentage derived from bytes sent; never moves backwards."""

    def __init__(self, total_bytes: int, on_change: Optional[Callable[[int], None]] = None):
        self.total_bytes = max(int(total_bytes), 1)
        self.sent_bytes = 0
        self.percent = 0
        self._on_change = on_change

    def advance(self, sent: int) -> None:
        self.sent_bytes += sent
        percent = min(100, max(0, round(self.sent_bytes * 100 / self.total_bytes)))
        if percent > self.percent:
            self.percent = percent
            if self._on_change is not None:
                self._on_change(percent)


class _ProgressStream(httpx.SyncByteStream):
    def __init__(self, stream: Any, tracker: ProgressTracker):
        self._stream = stream
        self._tracker = tracker

    def __iter__(self) -> Iterator[bytes]:
        for chunk in self._stream:
            yield chunk
            self._tracker.advance(len(chunk))

    def close(self) -> None:
        close = getattr(self._stream, "close", None)
        if close is not None:
            close()


class UploadState(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def _schedule_with_timer(delay: float, callback: Callable[[], None]) -> None:
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()


class MediaTransferClient:
    """Upload form state machine talking to the ingestion endpoint."""

    def __init__(
        self,
        base_url: str = "",
        *,
        session_token: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
        on_progress: Optional[Callable[[int], None]] = None,
        navigate: Optional[Callable[[str], None]] = None,
        schedule: Callable[[float, Callable[[], None]], None] = _schedule_with_timer,
        success_delay: float = SUCCESS_REDIRECT_DELAY_SECONDS,
    ):
        self._http = http_client or httpx.Client(base_url=base_url)
        self._session_token = session_token
        self._on_progress = on_progress
        self._navigate = navigate or self._remember_location
        self._schedule = schedule
        self.success_delay = success_delay

        self.state = UploadState.IDLE
        self.selected_file: Optional[SelectedFile] = None
        self.progress = 0
        self.progress_history: List[int] = []
        self.error: Optional[str] = None
        self.location: Optional[str] = None
        self.record: Optional[Dict[str, Any]] = None

    @property
    def is_uploading(self) -> bool:
        return self.state is UploadState.UPLOADING

    def _remember_location(self, path: str) -> None:
        self.location = path

    def _headers(self) -> Dict[str, str]:
        if not self._session_token:
            return {}
        return {"Authorization": f"Bearer {self._session_token}"}

    def _report_progress(self, percent: int) -> None:
        self.progress = percent
        self.progress_history.append(percent)
        if self._on_progress is not None:
            self._on_progress(percent)

    def select_file(self, file: SelectedFile) -> None:
        self.selected_file = file
        self.error = None

    def drop_file(self, file: SelectedFile) -> None:
        try:
            self.selected_file = accept_dropped_file(file)
        except UploadValidationError as exc:
            self.error = exc.message
            raise

    def clear_file(self) -> None:
        self.selected_file = None

    def submit(self, title: str, description: str = "", file: Optional[SelectedFile] = None) -> Dict[str, Any]:
        """Validate, upload and return the created record.

        Failures leave the client ready for another submission.
        """
        self.error = None
        upload = file or self.selected_file
        try:
            validate_submission(upload, title)
        except UploadValidationError as exc:
            self.error = exc.message
            raise

        self.state = UploadState.UPLOADING
        self.progress = 0
        self.progress_history = []
        try:
            record = self._send(upload, title, description)
        except TransportError:
            self.state = UploadState.FAILED
            self.error = UPLOAD_FAILED_MESSAGE
            raise

        self.record = record
        self.state = UploadState.SUCCEEDED
        self._schedule(self.success_delay, lambda: self._navigate(LANDING_PATH))
        return record

    def _send(self, upload: SelectedFile, title: str, description: str) -> Dict[str, Any]:
        try:
            with upload.open() as handle:
                request = self._http.build_request(
                    "POST",
                    UPLOAD_PATH,
                    files={"file": (upload.name, handle, upload.content_type)},
                    data={
                        "title": title,
                        "description": description or "",
                        "originalSize": str(upload.size),
                    },
                    headers=self._headers(),
                )
                total = int(request.headers.get("Content-Length") or 0) or upload.size
                tracker = ProgressTracker(total, on_change=self._report_progress)
                request.stream = _ProgressStream(request.stream, tracker)
                response = self._http.send(request)
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError, OSError) as exc:
            logger.warning("Video upload failed: %s", exc)
            raise TransportError(UPLOAD_FAILED_MESSAGE) from exc

        if not isinstance(payload, dict):
            raise TransportError(UPLOAD_FAILED_MESSAGE)
        return payload
