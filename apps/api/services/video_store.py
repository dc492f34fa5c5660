"""Metadata store for uploaded video records."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.video import Video
from services.errors import QueryError, StoreError

logger = logging.getLogger(__name__)


@dataclass
class NewVideoRecord:
    title: str
    public_id: str
    original_size: int
    compressed_size: int
    duration: float = 0.0
    description: Optional[str] = None
    uploaded_by: Optional[str] = None


class VideoStore(Protocol):
    async def create_record(self, fields: NewVideoRecord) -> Video:
        ...

    async def list_records(self) -> List[Video]:
        ...


class SqlAlchemyVideoStore:
    """Video records backed by a single async SQLAlchemy session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_record(self, fields: NewVideoRecord) -> Video:
        video = Video(
            title=fields.title,
            description=fields.description,
            public_id=fields.public_id,
            original_size=fields.original_size,
            compressed_size=fields.compressed_size,
            duration=fields.duration,
            uploaded_by=fields.uploaded_by,
        )
        try:
            self.session.add(video)
            await self.session.commit()
            await self.session.refresh(video)
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.exception("Could not persist video record public_id=%s", fields.public_id)
            raise StoreError("Could not save video record") from exc
        return video

    async def list_records(self) -> List[Video]:
        try:
            result = await self.session.execute(select(Video).order_by(Video.created_at.desc()))
        except SQLAlchemyError as exc:
            logger.exception("Could not list video records")
            raise QueryError("Something went wrong in fetching /video") from exc
        return list(result.scalars().all())
