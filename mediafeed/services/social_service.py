from uuid import UUID

from loguru import logger
from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mediafeed.core.errors import InvalidInputError, NotFoundError
from mediafeed.models.social import Follow
from mediafeed.models.users import User


def _shifted(column, delta: int):
    if delta > 0:
        return column + delta
    return case((column > 0, column - 1), else_=0)


class SocialService:
    """Follow edges and the denormalized follower/following counters.

    The edge and both counters are written in one transaction. When counters
    drift anyway (manual edits, partial restores), reconcile_counters
    recomputes them from the edges.
    """

    def __init__(self, db: AsyncSession, max_attempts: int = 3):
        self.db = db
        self.max_attempts = max_attempts

    async def toggle_follow(self, follower_id: UUID, following_id: UUID) -> bool:
        if follower_id == following_id:
            raise InvalidInputError("Cannot follow yourself")

        for user_id in (follower_id, following_id):
            if await self.db.get(User, user_id) is None:
                raise NotFoundError("User", user_id)

        for attempt in range(1, self.max_attempts + 1):
            try:
                is_following = await self._apply_follow_toggle(follower_id, following_id)
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                if attempt == self.max_attempts:
                    raise
                logger.warning(
                    f"Concurrent follow toggle {follower_id} -> {following_id}, retrying ({attempt})"
                )
                continue

            logger.info(
                f"User {follower_id} {'followed' if is_following else 'unfollowed'} user {following_id}"
            )
            return is_following

    async def _apply_follow_toggle(self, follower_id: UUID, following_id: UUID) -> bool:
        result = await self.db.execute(
            select(Follow)
            .where(Follow.follower_id == follower_id, Follow.following_id == following_id)
            .with_for_update()
        )
        existing = result.scalar_one_or_none()

        if existing is not None:
            await self.db.delete(existing)
            await self.db.flush()
            await self._shift_counters(follower_id, following_id, -1)
            return False

        self.db.add(Follow(follower_id=follower_id, following_id=following_id))
        await self.db.flush()
        await self._shift_counters(follower_id, following_id, 1)
        return True

    async def _shift_counters(self, follower_id: UUID, following_id: UUID, delta: int) -> None:
        await self.db.execute(
            update(User)
            .where(User.id == follower_id)
            .values(following_count=_shifted(User.following_count, delta))
            .execution_options(synchronize_session="fetch")
        )
        await self.db.execute(
            update(User)
            .where(User.id == following_id)
            .values(follower_count=_shifted(User.follower_count, delta))
            .execution_options(synchronize_session="fetch")
        )

    async def is_following(self, follower_id: UUID, following_id: UUID) -> bool:
        result = await self.db.execute(
            select(Follow.id).where(
                Follow.follower_id == follower_id,
                Follow.following_id == following_id,
            )
        )
        return result.first() is not None

    async def reconcile_counters(self) -> int:
        followers = dict((await self.db.execute(
            select(Follow.following_id, func.count(Follow.id)).group_by(Follow.following_id)
        )).all())
        following = dict((await self.db.execute(
            select(Follow.follower_id, func.count(Follow.id)).group_by(Follow.follower_id)
        )).all())

        users = (await self.db.execute(select(User))).scalars().all()
        fixed = 0
        for user in users:
            expected_followers = followers.get(user.id, 0)
            expected_following = following.get(user.id, 0)
            if user.follower_count == expected_followers and user.following_count == expected_following:
                continue
            logger.warning(
                f"Counter drift for user {user.id}: followers {user.follower_count} -> {expected_followers}, "
                f"following {user.following_count} -> {expected_following}"
            )
            user.follower_count = expected_followers
            user.following_count = expected_following
            fixed += 1

        await self.db.commit()
        logger.info(f"Follow counter reconciliation finished, {fixed} users corrected")
        return fixed
