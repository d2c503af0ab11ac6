"""Category model for the fixed video taxonomy."""

from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
import uuid

from database import Base


class Category(Base):
    """Category referenced from videos by slug.

    Video counts are not stored here; they are computed from the videos table.
    """

    __tablename__ = "categories"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    slug = Column(String, unique=True, nullable=False, index=True)
    icon = Column(String, nullable=False, default="fas fa-folder")
    color = Column(String, nullable=False, default="#00ffcc")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
