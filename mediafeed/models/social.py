import uuid

from sqlalchemy import Column, DateTime, ForeignKey, UniqueConstraint, Uuid

from mediafeed.db.database import Base
from mediafeed.utils.clock import utcnow


class Follow(Base):
    __tablename__ = "follows"
    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_follows_follower_following"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    follower_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    following_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
