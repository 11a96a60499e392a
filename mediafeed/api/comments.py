from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from mediafeed.api.deps import get_engagement_settings
from mediafeed.db.database import get_db
from mediafeed.schemas.comment import CommentCount, CommentCreate, CommentCreated, CommentResponse
from mediafeed.services.comment_service import CommentService

content_comments_router = APIRouter()
comments_router = APIRouter()


def _comment_service(db: AsyncSession) -> CommentService:
    return CommentService(db, max_length=get_engagement_settings().comment_max_length)


@content_comments_router.get("/{content_id}/comments", response_model=List[CommentResponse])
async def list_comments(
    content_id: UUID,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    return await _comment_service(db).list(content_id, limit=limit, offset=offset)


@content_comments_router.post(
    "/{content_id}/comments",
    response_model=CommentCreated,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    content_id: UUID,
    payload: CommentCreate,
    db: AsyncSession = Depends(get_db),
):
    comment = await _comment_service(db).create(content_id, payload.wallet_address, payload.text)
    return CommentCreated(id=comment.id)


@content_comments_router.get("/{content_id}/comments/count", response_model=CommentCount)
async def count_comments(content_id: UUID, db: AsyncSession = Depends(get_db)):
    return CommentCount(count=await _comment_service(db).count(content_id))


@comments_router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_id: UUID,
    wallet_address: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
):
    await _comment_service(db).delete(comment_id, wallet_address)
