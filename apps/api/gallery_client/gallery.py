"""Gallery view: listing fetch, local title search and downloads."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import httpx

logger = logging.getLogger(__name__)

LISTING_PATH = "/api/video"
SKELETON_PLACEHOLDER_COUNT = 6
FETCH_FAILED_MESSAGE = "Failed to fetch videos"


def _safe_filename(name: str) -> str:
    cleaned = re.sub(r"[\\/:*?\"<>|]+", "_", name).strip()
    return cleaned or "video"


class GalleryView:
    """Listing state for the gallery page."""

    def __init__(
        self,
        base_url: str = "",
        *,
        http_client: Optional[httpx.Client] = None,
        session_token: Optional[str] = None,
    ):
        self._http = http_client or httpx.Client(base_url=base_url)
        self._session_token = session_token
        self.records: List[Dict[str, Any]] = []
        self.loading = True
        self.refreshing = False
        self.error: Optional[str] = None
        self.search_term = ""

    def _headers(self) -> Dict[str, str]:
        if not self._session_token:
            return {}
        return {"Authorization": f"Bearer {self._session_token}"}

    def refresh(self) -> List[Dict[str, Any]]:
        """Fetch the listing; on failure keep the previous records and set the error."""
        self.refreshing = True
        try:
            response = self._http.get(LISTING_PATH, headers=self._headers())
            response.raise_for_status()
            payload = response.json()
            if not isinstance(payload, list):
                raise ValueError("Unexpected response format while fetching videos")
            self.records = payload
            self.error = None
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Gallery fetch failed: %s", exc)
            self.error = FETCH_FAILED_MESSAGE
        finally:
            self.loading = False
            self.refreshing = False
        return self.records

    def set_search_term(self, term: str) -> None:
        self.search_term = term or ""

    def visible_records(self) -> List[Dict[str, Any]]:
        needle = self.search_term.lower()
        return [
            record
            for record in self.records
            if needle in str(record.get("title") or "").lower()
        ]

    def placeholders(self) -> int:
        return SKELETON_PLACEHOLDER_COUNT if self.loading else 0

    def empty_message(self) -> Optional[str]:
        if self.loading or self.visible_records():
            return None
        if self.search_term:
            return "No videos match your search"
        return "No videos available"

    @staticmethod
    def download_link(record: Dict[str, Any]) -> Tuple[str, str]:
        """(url, filename) pair for a record's download."""
        url = record.get("download_url")
        if not url:
            raise ValueError(f"Video {record.get('id')} has no download URL")
        return str(url), f"{_safe_filename(str(record.get('title') or 'video'))}.mp4"

    def download(self, record: Dict[str, Any], directory: str | Path) -> Path:
        url, filename = self.download_link(record)
        target = Path(directory) / filename
        target.parent.mkdir(parents=True, exist_ok=True)
        try:
            with self._http.stream("GET", url, follow_redirects=True) as response:
                response.raise_for_status()
                with target.open("wb") as out:
                    for chunk in response.iter_bytes():
                        out.write(chunk)
        except (httpx.HTTPError, OSError):
            target.unlink(missing_ok=True)
            raise
        return target
