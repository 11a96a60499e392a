import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence
from uuid import UUID

from loguru import logger
from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from mediafeed.core.config import FeedSettings
from mediafeed.core.errors import InvalidInputError
from mediafeed.models.content import Content, ContentType
from mediafeed.schemas.content import ContentCreate, ContentDetail, ContentSummary, media_to_record
from mediafeed.schemas.page import FeedCursor, Page, SearchCursor
from mediafeed.services.user_service import UserService
from mediafeed.utils.clock import ensure_utc


class BackfillSide(str, Enum):
    NONE = "none"
    IMAGES = "images"
    VIDEOS = "videos"


@dataclass(frozen=True)
class MixPlan:
    video_target: int
    image_target: int

    @classmethod
    def for_page(cls, num_items: int, video_ratio: float) -> "MixPlan":
        # round() drops float noise such as 0.7 * 3 == 2.0999999999999996
        video_target = min(num_items, math.ceil(round(video_ratio * num_items, 9)))
        return cls(video_target=video_target, image_target=num_items - video_target)


@dataclass(frozen=True)
class BackfillDecision:
    side: BackfillSide
    limit: int = 0


def decide_backfill(plan: MixPlan, videos_found: int, images_found: int) -> BackfillDecision:
    """Pick at most one side to re-fetch with a larger limit.

    A video shortfall is checked first and wins; the image shortfall is only
    considered when videos met their target. Both counts are from the first
    fetch.
    """
    if videos_found < plan.video_target:
        shortfall = plan.video_target - videos_found
        return BackfillDecision(BackfillSide.IMAGES, plan.image_target + shortfall)
    if images_found < plan.image_target:
        shortfall = plan.image_target - images_found
        return BackfillDecision(BackfillSide.VIDEOS, plan.video_target + shortfall)
    return BackfillDecision(BackfillSide.NONE)


def _recency_key(content: Content):
    return ensure_utc(content.created_at), str(content.id)


def merge_runs(videos: Sequence[Content], images: Sequence[Content]) -> List[Content]:
    """Videos newest first, then images newest first. Not a global interleave."""
    return (
        sorted(videos, key=_recency_key, reverse=True)
        + sorted(images, key=_recency_key, reverse=True)
    )


def matches_query(content: Content, query: str) -> bool:
    needle = query.strip().lower()
    hashtags = [tag.lower() for tag in (content.hashtags or [])]
    if needle.startswith("#"):
        tag = needle[1:]
        return any(tag in hashtag for hashtag in hashtags)
    return (
        needle in (content.title or "").lower()
        or needle in (content.description or "").lower()
        or any(needle in hashtag for hashtag in hashtags)
    )


def normalize_hashtags(hashtags: Sequence[str]) -> List[str]:
    seen = set()
    normalized = []
    for tag in hashtags:
        tag = tag.strip().lstrip("#").strip()
        if tag and tag.lower() not in seen:
            seen.add(tag.lower())
            normalized.append(tag)
    return normalized


class FeedService:
    def __init__(
        self,
        db: AsyncSession,
        video_ratio: float = 0.7,
        premium_min_followers: int = 100,
        authors: Optional[UserService] = None,
    ):
        if not 0 < video_ratio <= 1:
            raise ValueError(f"video_ratio must be in (0, 1], got {video_ratio}")
        self.db = db
        self.video_ratio = video_ratio
        self.premium_min_followers = premium_min_followers
        self.authors = authors or UserService(db)

    @classmethod
    def from_settings(cls, db: AsyncSession, settings: FeedSettings) -> "FeedService":
        return cls(
            db,
            video_ratio=settings.video_ratio,
            premium_min_followers=settings.premium_min_followers,
        )

    async def get_page(
        self,
        num_items: int,
        cursor: Optional[FeedCursor] = None,
        is_active_only: bool = True,
        prefer_videos: bool = True,
    ) -> Page[ContentSummary]:
        if num_items < 1:
            raise InvalidInputError("num_items must be positive")
        if cursor is not None and not isinstance(cursor, FeedCursor):
            raise InvalidInputError("The feed only accepts feed cursors")

        if prefer_videos:
            items, is_done = await self._mixed_page(num_items, is_active_only)
            next_cursor = None if is_done else FeedCursor.mixed()
        else:
            items, next_cursor = await self._recent_page(num_items, cursor, is_active_only)
            is_done = next_cursor is None

        return Page[ContentSummary](
            page=await self._enrich(items),
            is_done=is_done,
            continue_cursor=str(next_cursor) if next_cursor else None,
        )

    async def _mixed_page(self, num_items: int, is_active_only: bool):
        plan = MixPlan.for_page(num_items, self.video_ratio)

        videos = await self._latest_of_type(ContentType.VIDEO, plan.video_target, is_active_only)
        images = await self._latest_of_type(ContentType.IMAGES, plan.image_target, is_active_only)

        decision = decide_backfill(plan, len(videos), len(images))
        if decision.side is BackfillSide.IMAGES:
            images = await self._latest_of_type(ContentType.IMAGES, decision.limit, is_active_only)
        elif decision.side is BackfillSide.VIDEOS:
            videos = await self._latest_of_type(ContentType.VIDEO, decision.limit, is_active_only)

        candidates = merge_runs(videos, images)
        logger.debug(
            f"Mixed page: plan={plan}, backfill={decision.side.value}, "
            f"videos={len(videos)}, images={len(images)}"
        )
        return candidates[:num_items], len(candidates) < num_items

    async def _latest_of_type(self, content_type: ContentType, limit: int, is_active_only: bool) -> List[Content]:
        if limit <= 0:
            return []
        stmt = select(Content).where(Content.content_type == content_type.value)
        if is_active_only:
            stmt = stmt.where(Content.is_active.is_(True))
        stmt = stmt.order_by(Content.created_at.desc(), Content.id.desc()).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _recent_page(self, num_items: int, cursor: Optional[FeedCursor], is_active_only: bool):
        stmt = select(Content)
        if is_active_only:
            stmt = stmt.where(Content.is_active.is_(True))
        # a client switching out of mixed mode starts from the newest item
        if cursor is not None and not cursor.is_mixed:
            created_at, last_id = cursor.position()
            stmt = stmt.where(or_(
                Content.created_at < created_at,
                and_(Content.created_at == created_at, Content.id < last_id),
            ))
        stmt = stmt.order_by(Content.created_at.desc(), Content.id.desc()).limit(num_items + 1)

        rows = list((await self.db.execute(stmt)).scalars().all())
        items = rows[:num_items]
        if len(rows) > num_items:
            last = items[-1]
            return items, FeedCursor.after(last.created_at, last.id)
        return items, None

    async def _enrich(self, items: Sequence[Content]) -> List[ContentSummary]:
        enriched = []
        for content in items:
            author = await self.authors.get_author(content.author_id)
            enriched.append(ContentSummary.from_model(content, author))
        return enriched

    async def get_by_id(self, content_id: UUID) -> Optional[ContentDetail]:
        content = await self.db.get(Content, content_id)
        if content is None:
            return None
        author = await self.authors.get_by_id(content.author_id)
        return ContentDetail.from_model(
            content,
            author_wallet_address=author.wallet_address if author else None,
        )

    async def search(
        self,
        query: str,
        num_items: int,
        cursor: Optional[SearchCursor] = None,
        is_active_only: bool = True,
    ) -> Page[ContentSummary]:
        if num_items < 1:
            raise InvalidInputError("num_items must be positive")
        if cursor is not None and not isinstance(cursor, SearchCursor):
            raise InvalidInputError("Search only accepts search cursors")

        stmt = select(Content)
        if is_active_only:
            stmt = stmt.where(Content.is_active.is_(True))
        stmt = stmt.order_by(Content.created_at.desc(), Content.id.desc())
        rows = (await self.db.execute(stmt)).scalars().all()

        filtered = [content for content in rows if matches_query(content, query or "")]

        start = cursor.offset if cursor else 0
        end = start + num_items
        is_done = end >= len(filtered)

        return Page[ContentSummary](
            page=await self._enrich(filtered[start:end]),
            is_done=is_done,
            continue_cursor=None if is_done else str(SearchCursor(end)),
        )

    async def get_first_active(self) -> Optional[ContentDetail]:
        result = await self.db.execute(
            select(Content)
            .where(Content.is_active.is_(True))
            .order_by(Content.created_at.desc(), Content.id.desc())
            .limit(1)
        )
        content = result.scalar_one_or_none()
        if content is None:
            return None
        return await self.get_by_id(content.id)

    async def get_trending(self, limit: int = 10) -> List[ContentSummary]:
        result = await self.db.execute(
            select(Content)
            .where(Content.is_active.is_(True))
            .order_by(Content.view_count.desc(), Content.created_at.desc())
            .limit(limit)
        )
        return await self._enrich(result.scalars().all())

    async def get_user_content(self, wallet_address: str) -> List[ContentSummary]:
        author = await self.authors.get_by_wallet(wallet_address)
        if author is None:
            return []
        result = await self.db.execute(
            select(Content)
            .where(Content.author_id == author.id, Content.is_active.is_(True))
            .order_by(Content.created_at.desc(), Content.id.desc())
        )
        return await self._enrich(result.scalars().all())

    async def create_content(self, payload: ContentCreate) -> Content:
        author = await self.authors.require_by_wallet(payload.author_wallet_address)

        if not payload.title.strip():
            raise InvalidInputError("Title cannot be empty")
        if payload.is_premium:
            if payload.price is None:
                raise InvalidInputError("Premium content requires a price")
            if author.follower_count < self.premium_min_followers:
                raise InvalidInputError(
                    f"Need at least {self.premium_min_followers} followers to create premium content"
                )
        if payload.is_promoting_token and not payload.promoted_token_id:
            raise InvalidInputError("A token id is required when promoting a token")

        content = Content(
            author_id=author.id,
            content_type=payload.media.content_type,
            media=media_to_record(payload.media),
            title=payload.title.strip(),
            description=payload.description,
            hashtags=normalize_hashtags(payload.hashtags),
            is_premium=payload.is_premium,
            price=payload.price if payload.is_premium else None,
            is_active=True,
            view_count=0,
            last_viewed_at=None,
            promoted_token_id=payload.promoted_token_id if payload.is_promoting_token else None,
            is_on_chain=payload.is_on_chain,
        )
        self.db.add(content)
        await self.db.commit()
        await self.db.refresh(content)

        logger.info(f"User {author.id} created {content.content_type} content {content.id}")
        return content
