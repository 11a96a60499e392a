from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from mediafeed.api.deps import get_engagement_settings, get_feed_settings
from mediafeed.core.errors import InvalidInputError
from mediafeed.db.database import get_db
from mediafeed.schemas.content import (
    ContentCreate,
    ContentCreated,
    ContentDetail,
    ContentStats,
    ContentSummary,
    LikeCounts,
    LikeState,
    LikeToggleRequest,
    ViewRecorded,
)
from mediafeed.schemas.page import FeedCursor, Page, SearchCursor
from mediafeed.services.engagement_service import EngagementService
from mediafeed.services.feed_service import FeedService
from mediafeed.services.user_service import UserService
from mediafeed.utils.security import get_optional_subject

content_router = APIRouter()


def _page_size(num_items: Optional[int]) -> int:
    settings = get_feed_settings()
    if num_items is None:
        return settings.default_page_size
    if num_items > settings.max_page_size:
        raise InvalidInputError(f"num_items cannot exceed {settings.max_page_size}")
    return num_items


@content_router.get("/feed", response_model=Page[ContentSummary], response_model_by_alias=True)
async def get_feed(
    num_items: Optional[int] = Query(None, ge=1),
    cursor: Optional[str] = Query(None),
    is_active_only: bool = Query(True),
    prefer_videos: bool = Query(True),
    db: AsyncSession = Depends(get_db),
):
    feed_service = FeedService.from_settings(db, get_feed_settings())
    return await feed_service.get_page(
        num_items=_page_size(num_items),
        cursor=FeedCursor(cursor) if cursor else None,
        is_active_only=is_active_only,
        prefer_videos=prefer_videos,
    )


@content_router.get("/search", response_model=Page[ContentSummary], response_model_by_alias=True)
async def search_content(
    q: str = Query(""),
    num_items: Optional[int] = Query(None, ge=1),
    cursor: Optional[str] = Query(None),
    is_active_only: bool = Query(True),
    db: AsyncSession = Depends(get_db),
):
    feed_service = FeedService.from_settings(db, get_feed_settings())
    return await feed_service.search(
        query=q,
        num_items=_page_size(num_items),
        cursor=SearchCursor.parse(cursor),
        is_active_only=is_active_only,
    )


@content_router.get("/first", response_model=Optional[ContentDetail])
async def get_first_active_content(db: AsyncSession = Depends(get_db)):
    return await FeedService.from_settings(db, get_feed_settings()).get_first_active()


@content_router.get("/trending", response_model=List[ContentSummary])
async def get_trending_content(
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    return await FeedService.from_settings(db, get_feed_settings()).get_trending(limit)


@content_router.post("", response_model=ContentCreated, status_code=status.HTTP_201_CREATED)
async def create_content(payload: ContentCreate, db: AsyncSession = Depends(get_db)):
    content = await FeedService.from_settings(db, get_feed_settings()).create_content(payload)
    return ContentCreated(content_id=content.id)


@content_router.get("/{content_id}", response_model=Optional[ContentDetail])
async def get_content(content_id: UUID, db: AsyncSession = Depends(get_db)):
    return await FeedService.from_settings(db, get_feed_settings()).get_by_id(content_id)


@content_router.post("/{content_id}/like", response_model=LikeState)
async def toggle_like(
    content_id: UUID,
    payload: LikeToggleRequest,
    db: AsyncSession = Depends(get_db),
):
    user = await UserService(db).require_by_wallet(payload.wallet_address)
    engagement_service = EngagementService.from_settings(db, get_engagement_settings())
    vote = await engagement_service.toggle_like(content_id, user.id, payload.type)
    return LikeState(type=vote)


@content_router.get("/{content_id}/like", response_model=LikeState)
async def get_user_like(
    content_id: UUID,
    wallet_address: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
):
    user = await UserService(db).get_by_wallet(wallet_address)
    if user is None:
        return LikeState(type=None)
    engagement_service = EngagementService.from_settings(db, get_engagement_settings())
    return LikeState(type=await engagement_service.get_user_like(content_id, user.id))


@content_router.get("/{content_id}/likes", response_model=LikeCounts)
async def get_likes(content_id: UUID, db: AsyncSession = Depends(get_db)):
    return await EngagementService.from_settings(db, get_engagement_settings()).get_likes(content_id)


@content_router.post("/{content_id}/view", response_model=ViewRecorded)
async def increment_view(
    content_id: UUID,
    subject: Optional[str] = Depends(get_optional_subject),
    db: AsyncSession = Depends(get_db),
):
    engagement_service = EngagementService.from_settings(db, get_engagement_settings())
    counted = await engagement_service.increment_view(content_id, subject)
    return ViewRecorded(counted=counted)


@content_router.get("/{content_id}/stats", response_model=ContentStats)
async def get_content_stats(content_id: UUID, db: AsyncSession = Depends(get_db)):
    return await EngagementService.from_settings(db, get_engagement_settings()).get_stats(content_id)
