from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict


class UserResponse(BaseModel):
    id: UUID
    wallet_address: str
    name: str
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    follower_count: int
    following_count: int
    is_creator: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AuthorProfile(BaseModel):
    id: UUID
    wallet_address: str
    name: str
    avatar_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class WalletConnectRequest(BaseModel):
    wallet_address: str = Field(..., min_length=1, description="SUI wallet address")
    name: Optional[str] = None


class WalletConnectResponse(BaseModel):
    user: UserResponse
    is_new_user: bool
    access_token: str
    token_type: str = "bearer"


class ProfileUpdate(BaseModel):
    name: str = Field(..., min_length=1)
    bio: Optional[str] = None


class AvatarUpdate(BaseModel):
    avatar_url: str = Field(..., min_length=1)


class FollowToggleRequest(BaseModel):
    follower_wallet_address: str = Field(..., min_length=1)
    following_wallet_address: str = Field(..., min_length=1)


class FollowState(BaseModel):
    is_following: bool
