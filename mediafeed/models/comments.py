import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text, Uuid

from mediafeed.db.database import Base
from mediafeed.utils.clock import utcnow


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    content_id = Column(Uuid, ForeignKey("content.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(Uuid, nullable=False, index=True)

    text = Column(Text, nullable=False)
    like_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
