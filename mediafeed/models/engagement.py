import uuid
from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, UniqueConstraint, Uuid

from mediafeed.db.database import Base
from mediafeed.utils.clock import utcnow


class LikeType(str, Enum):
    LIKE = "like"
    DISLIKE = "dislike"


class ContentLike(Base):
    __tablename__ = "content_likes"
    __table_args__ = (
        UniqueConstraint("content_id", "user_id", name="uq_content_likes_content_user"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    content_id = Column(Uuid, ForeignKey("content.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    type = Column(String(8), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class ContentView(Base):
    __tablename__ = "content_views"
    __table_args__ = (
        Index("ix_content_views_content_viewer_at", "content_id", "viewer_id", "viewed_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    content_id = Column(Uuid, ForeignKey("content.id", ondelete="CASCADE"), nullable=False)
    # authenticated subject or "anonymous"
    viewer_id = Column(String, nullable=False, index=True)

    viewed_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
