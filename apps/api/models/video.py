"""Video model for catalog clips."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, String, Text

from database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Video(Base):
    """Uploaded clip with its engagement counters.

    ``id`` is assigned in insertion order and doubles as the storage order
    used to break sort ties.
    """

    __tablename__ = "videos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    video_url = Column(String, nullable=False)
    thumbnail_url = Column(String, nullable=False)
    duration = Column(String, nullable=False, default="0:30")
    category = Column(String, nullable=False, index=True)
    tags = Column(JSON, nullable=False, default=list)
    uploader = Column(String, nullable=False, index=True)
    views = Column(Integer, nullable=False, default=0)
    likes = Column(Integer, nullable=False, default=0)
    downloads = Column(Integer, nullable=False, default=0)
    is_copyright_free = Column(Boolean, nullable=False, default=True)
    resolution = Column(String, nullable=False, default="1080p")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
