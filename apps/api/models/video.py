"""Video model for uploaded media assets."""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, Column, DateTime, Float, String, Text
from sqlalchemy.sql import func
import uuid

from database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Video(Base):
    """One uploaded media item as reported by the remote media processor."""

    __tablename__ = "videos"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    public_id = Column(String, nullable=False, unique=True, index=True)
    original_size = Column(BigInteger, nullable=False)
    compressed_size = Column(BigInteger, nullable=False, default=0)
    duration = Column(Float, nullable=False, default=0.0)
    uploaded_by = Column(String, nullable=True, index=True)
    # Set client-side so ordering keeps sub-second precision on every backend.
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
