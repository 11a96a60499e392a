import uuid
from enum import Enum

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Index, Integer, String, Text, Uuid

from mediafeed.db.database import Base
from mediafeed.utils.clock import utcnow


class ContentType(str, Enum):
    VIDEO = "video"
    IMAGES = "images"


class Content(Base):
    __tablename__ = "content"
    __table_args__ = (
        Index("ix_content_type_active_created", "content_type", "is_active", "created_at"),
        Index("ix_content_active_created", "is_active", "created_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    author_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    content_type = Column(String(16), nullable=False)
    # video object for "video", ordered list of image objects for "images"
    media = Column(JSON, nullable=False)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    hashtags = Column(JSON, nullable=False, default=list)

    is_premium = Column(Boolean, nullable=False, default=False)
    price = Column(Float, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    view_count = Column(Integer, nullable=False, default=0, index=True)
    last_viewed_at = Column(DateTime(timezone=True), nullable=True)

    promoted_token_id = Column(String, nullable=True, index=True)
    is_on_chain = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
