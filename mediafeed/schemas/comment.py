from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class CommentCreate(BaseModel):
    wallet_address: str = Field(..., min_length=1)
    text: str


class CommentCreated(BaseModel):
    id: UUID


class CommentResponse(BaseModel):
    id: UUID
    content_id: UUID
    text: str
    like_count: int
    created_at: datetime

    author_id: UUID
    author_name: str
    author_avatar_url: Optional[str] = None
    author_wallet_address: str


class CommentCount(BaseModel):
    count: int
