from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from mediafeed.api.deps import get_engagement_settings, get_feed_settings
from mediafeed.db.database import get_db
from mediafeed.schemas.content import ContentSummary
from mediafeed.schemas.user import AvatarUpdate, FollowState, FollowToggleRequest, ProfileUpdate, UserResponse
from mediafeed.services.feed_service import FeedService
from mediafeed.services.social_service import SocialService
from mediafeed.services.user_service import UserService

users_router = APIRouter()


@users_router.post("/follow/toggle", response_model=FollowState)
async def toggle_follow(
    payload: FollowToggleRequest,
    db: AsyncSession = Depends(get_db),
):
    user_service = UserService(db)
    follower = await user_service.require_by_wallet(payload.follower_wallet_address)
    following = await user_service.require_by_wallet(payload.following_wallet_address)

    social_service = SocialService(db, max_attempts=get_engagement_settings().toggle_max_attempts)
    is_following = await social_service.toggle_follow(follower.id, following.id)
    return FollowState(is_following=is_following)


@users_router.get("/follow/status", response_model=FollowState)
async def follow_status(
    follower_wallet_address: str = Query(..., min_length=1),
    following_wallet_address: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
):
    user_service = UserService(db)
    follower = await user_service.get_by_wallet(follower_wallet_address)
    following = await user_service.get_by_wallet(following_wallet_address)
    if follower is None or following is None:
        return FollowState(is_following=False)

    is_following = await SocialService(db).is_following(follower.id, following.id)
    return FollowState(is_following=is_following)


@users_router.get("/{wallet_address}", response_model=UserResponse)
async def get_user(wallet_address: str, db: AsyncSession = Depends(get_db)):
    user = await UserService(db).require_by_wallet(wallet_address)
    return UserResponse.model_validate(user)


@users_router.patch("/{wallet_address}", response_model=UserResponse)
async def update_profile(
    wallet_address: str,
    payload: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
):
    user = await UserService(db).update_profile(wallet_address, payload.name, payload.bio)
    return UserResponse.model_validate(user)


@users_router.put("/{wallet_address}/avatar", response_model=UserResponse)
async def update_avatar(
    wallet_address: str,
    payload: AvatarUpdate,
    db: AsyncSession = Depends(get_db),
):
    user = await UserService(db).update_avatar(wallet_address, payload.avatar_url)
    return UserResponse.model_validate(user)


@users_router.get("/{wallet_address}/content", response_model=List[ContentSummary])
async def get_user_content(wallet_address: str, db: AsyncSession = Depends(get_db)):
    feed_service = FeedService.from_settings(db, get_feed_settings())
    return await feed_service.get_user_content(wallet_address)
