from typing import Optional, Tuple
from uuid import UUID

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mediafeed.core.errors import InvalidInputError, NotFoundError
from mediafeed.models.users import User
from mediafeed.schemas.user import AuthorProfile

DEFAULT_USER_NAME = "Anonymous"


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_wallet(self, wallet_address: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.wallet_address == wallet_address)
        )
        return result.scalar_one_or_none()

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def require_by_wallet(self, wallet_address: str) -> User:
        user = await self.get_by_wallet(wallet_address)
        if user is None:
            raise NotFoundError("User", wallet_address)
        return user

    async def get_author(self, user_id: UUID) -> Optional[AuthorProfile]:
        user = await self.get_by_id(user_id)
        if user is None:
            return None
        return AuthorProfile.model_validate(user)

    async def connect_wallet(
        self,
        wallet_address: str,
        name: Optional[str] = None,
    ) -> Tuple[User, bool]:
        wallet_address = (wallet_address or "").strip()
        if not wallet_address:
            raise InvalidInputError("Wallet address is required")

        user = await self.get_by_wallet(wallet_address)
        if user:
            logger.info(f"Found existing user {user.id} for wallet {wallet_address}")
            return user, False

        logger.info(f"Creating new user for wallet {wallet_address}")

        new_user = User(
            wallet_address=wallet_address,
            name=(name or "").strip() or DEFAULT_USER_NAME,
            follower_count=0,
            following_count=0,
            is_creator=False,
        )

        self.db.add(new_user)
        try:
            await self.db.commit()
        except IntegrityError:
            # another request registered the same wallet first
            await self.db.rollback()
            user = await self.require_by_wallet(wallet_address)
            return user, False
        await self.db.refresh(new_user)

        logger.info(f"Created new user {new_user.id} for wallet {wallet_address}")

        return new_user, True

    async def update_profile(self, wallet_address: str, name: str, bio: Optional[str] = None) -> User:
        name = (name or "").strip()
        if not name:
            raise InvalidInputError("Name cannot be empty")

        user = await self.require_by_wallet(wallet_address)
        user.name = name
        user.bio = (bio or "").strip() or None
        await self.db.commit()
        await self.db.refresh(user)
        logger.info(f"Updated profile of user {user.id}")
        return user

    async def update_avatar(self, wallet_address: str, avatar_url: str) -> User:
        user = await self.require_by_wallet(wallet_address)
        user.avatar_url = avatar_url
        await self.db.commit()
        await self.db.refresh(user)
        logger.info(f"Updated avatar of user {user.id}")
        return user
