from typing import List
from uuid import UUID

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from mediafeed.core.errors import AuthorizationError, DataIntegrityError, InvalidInputError, NotFoundError
from mediafeed.models.comments import Comment
from mediafeed.models.content import Content
from mediafeed.schemas.comment import CommentResponse
from mediafeed.services.user_service import UserService
from mediafeed.utils.clock import ensure_utc


class CommentService:
    def __init__(self, db: AsyncSession, max_length: int = 1000):
        self.db = db
        self.max_length = max_length
        self.users = UserService(db)

    async def create(self, content_id: UUID, wallet_address: str, text: str) -> Comment:
        text = (text or "").strip()
        if not text:
            raise InvalidInputError("Comment cannot be empty")
        if len(text) > self.max_length:
            raise InvalidInputError(f"Comment cannot be longer than {self.max_length} characters")

        author = await self.users.require_by_wallet(wallet_address)
        if await self.db.get(Content, content_id) is None:
            raise NotFoundError("Content", content_id)

        comment = Comment(
            content_id=content_id,
            author_id=author.id,
            text=text,
            like_count=0,
        )
        self.db.add(comment)
        await self.db.commit()
        await self.db.refresh(comment)

        logger.info(f"User {author.id} commented {comment.id} on content {content_id}")
        return comment

    async def delete(self, comment_id: UUID, wallet_address: str) -> None:
        comment = await self.db.get(Comment, comment_id)
        if comment is None:
            raise NotFoundError("Comment", comment_id)

        user = await self.users.get_by_wallet(wallet_address)
        if user is None or user.id != comment.author_id:
            raise AuthorizationError("Only the author can delete this comment")

        await self.db.delete(comment)
        await self.db.commit()
        logger.info(f"User {user.id} deleted comment {comment_id}")

    async def list(self, content_id: UUID, limit: int = 20, offset: int = 0) -> List[CommentResponse]:
        if limit < 1:
            raise InvalidInputError("limit must be positive")
        if offset < 0:
            raise InvalidInputError("offset cannot be negative")

        result = await self.db.execute(
            select(Comment)
            .where(Comment.content_id == content_id)
            .order_by(Comment.created_at.desc(), Comment.id.desc())
            .limit(limit + offset)
        )
        comments = result.scalars().all()[offset:offset + limit]

        items = []
        for comment in comments:
            author = await self.users.get_by_id(comment.author_id)
            if author is None:
                raise DataIntegrityError(f"Author of comment {comment.id} not found")
            items.append(CommentResponse(
                id=comment.id,
                content_id=comment.content_id,
                text=comment.text,
                like_count=comment.like_count,
                created_at=ensure_utc(comment.created_at),
                author_id=author.id,
                author_name=author.name,
                author_avatar_url=author.avatar_url,
                author_wallet_address=author.wallet_address,
            ))
        return items

    async def count(self, content_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count(Comment.id)).where(Comment.content_id == content_id)
        )
        return int(result.scalar_one() or 0)
