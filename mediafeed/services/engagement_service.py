from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mediafeed.core.config import EngagementSettings
from mediafeed.core.errors import NotFoundError
from mediafeed.models.content import Content
from mediafeed.models.engagement import ContentLike, ContentView, LikeType
from mediafeed.models.users import User
from mediafeed.schemas.content import ContentStats, LikeCounts
from mediafeed.utils.clock import ensure_utc, utcnow

ANONYMOUS_VIEWER = "anonymous"


class EngagementService:
    """Likes, dislikes and view counting for content.

    View counts are denormalized on the content row and guarded by a per
    viewer cooldown. Like and dislike totals are counted from the vote rows
    whenever they are read.
    """

    def __init__(
        self,
        db: AsyncSession,
        view_cooldown: timedelta = timedelta(minutes=30),
        max_attempts: int = 3,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.view_cooldown = view_cooldown
        self.max_attempts = max_attempts
        self.clock = clock

    @classmethod
    def from_settings(cls, db: AsyncSession, settings: EngagementSettings) -> "EngagementService":
        return cls(
            db,
            view_cooldown=timedelta(minutes=settings.view_cooldown_minutes),
            max_attempts=settings.toggle_max_attempts,
        )

    async def toggle_like(self, content_id: UUID, user_id: UUID, like_type: LikeType) -> Optional[LikeType]:
        """Cycle the user's vote: insert, remove on repeat, or switch type in place."""
        like_type = LikeType(like_type)
        await self._require_content(content_id)
        if await self.db.get(User, user_id) is None:
            raise NotFoundError("User", user_id)

        for attempt in range(1, self.max_attempts + 1):
            try:
                result = await self._apply_like_toggle(content_id, user_id, like_type)
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                if attempt == self.max_attempts:
                    raise
                logger.warning(
                    f"Concurrent vote on content {content_id} by user {user_id}, retrying ({attempt})"
                )
                continue

            logger.info(f"Vote of user {user_id} on content {content_id} is now {result}")
            return result

    async def _apply_like_toggle(self, content_id: UUID, user_id: UUID, like_type: LikeType) -> Optional[LikeType]:
        result = await self.db.execute(
            select(ContentLike)
            .where(ContentLike.content_id == content_id, ContentLike.user_id == user_id)
            .with_for_update()
        )
        existing = result.scalar_one_or_none()

        if existing is None:
            self.db.add(ContentLike(
                content_id=content_id,
                user_id=user_id,
                type=like_type.value,
                created_at=self.clock(),
            ))
            await self.db.flush()
            return like_type

        if existing.type == like_type.value:
            await self.db.delete(existing)
            await self.db.flush()
            return None

        existing.type = like_type.value
        await self.db.flush()
        return like_type

    async def get_user_like(self, content_id: UUID, user_id: UUID) -> Optional[LikeType]:
        result = await self.db.execute(
            select(ContentLike.type).where(
                ContentLike.content_id == content_id,
                ContentLike.user_id == user_id,
            )
        )
        vote = result.scalar_one_or_none()
        return LikeType(vote) if vote else None

    async def get_likes(self, content_id: UUID) -> LikeCounts:
        result = await self.db.execute(
            select(ContentLike.type, func.count(ContentLike.id))
            .where(ContentLike.content_id == content_id)
            .group_by(ContentLike.type)
        )
        counts = {vote_type: count for vote_type, count in result.all()}
        return LikeCounts(
            likes=counts.get(LikeType.LIKE.value, 0),
            dislikes=counts.get(LikeType.DISLIKE.value, 0),
        )

    async def increment_view(self, content_id: UUID, viewer_id: Optional[str] = None) -> bool:
        """Count a view unless this viewer was already counted within the cooldown.

        Unauthenticated viewers share the single "anonymous" bucket.
        Returns whether the view was counted.
        """
        viewer_id = viewer_id or ANONYMOUS_VIEWER

        # row lock serializes concurrent views of the same content
        result = await self.db.execute(
            select(Content).where(Content.id == content_id).with_for_update()
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundError("Content", content_id)

        now = self.clock()
        result = await self.db.execute(
            select(ContentView.viewed_at)
            .where(ContentView.content_id == content_id, ContentView.viewer_id == viewer_id)
            .order_by(ContentView.viewed_at.desc())
            .limit(1)
        )
        last_viewed_at = ensure_utc(result.scalar_one_or_none())

        if last_viewed_at is not None and now - last_viewed_at <= self.view_cooldown:
            await self.db.commit()
            logger.debug(f"View of content {content_id} by {viewer_id} is within cooldown, skipping")
            return False

        self.db.add(ContentView(content_id=content_id, viewer_id=viewer_id, viewed_at=now))
        await self.db.execute(
            update(Content)
            .where(Content.id == content_id)
            .values(view_count=Content.view_count + 1, last_viewed_at=now)
            .execution_options(synchronize_session="fetch")
        )
        await self.db.commit()

        logger.debug(f"Counted view of content {content_id} by {viewer_id}")
        return True

    async def get_stats(self, content_id: UUID) -> ContentStats:
        content = await self._require_content(content_id)
        counts = await self.get_likes(content_id)
        return ContentStats(
            view_count=content.view_count or 0,
            last_viewed_at=ensure_utc(content.last_viewed_at),
            likes=counts.likes,
            dislikes=counts.dislikes,
        )

    async def _require_content(self, content_id: UUID) -> Content:
        content = await self.db.get(Content, content_id)
        if content is None:
            raise NotFoundError("Content", content_id)
        return content
