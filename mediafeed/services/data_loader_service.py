import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Set
from uuid import UUID

from dateutil import parser as date_parser
from loguru import logger
from pydantic import TypeAdapter, ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mediafeed.models.content import Content
from mediafeed.models.users import User
from mediafeed.schemas.content import Media, media_to_record
from mediafeed.services.feed_service import normalize_hashtags

_media_adapter = TypeAdapter(Media)


class DataLoaderService:
    """Seeds users and content from a JSON export.

    Expected layout: {"users": [...], "content": [...]} where each content
    entry names its author by "author_wallet_address". Records that already
    exist (same wallet, same content id) are skipped.
    """

    def __init__(self, db: AsyncSession, batch_size: int = 100):
        self.db = db
        self.batch_size = batch_size

    async def load_from_json_file(self, json_file_path: str) -> Dict[str, int]:
        file_path = Path(json_file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"JSON file not found: {json_file_path}")

        logger.info(f"Loading data from {json_file_path}")

        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        return await self.load(data)

    async def load(self, data: Dict) -> Dict[str, int]:
        users_loaded = await self._load_users(data.get('users', []))
        content_loaded = await self._load_content(data.get('content', []))

        logger.info(f"Data loading completed: {users_loaded} users, {content_loaded} content items")
        return {'users': users_loaded, 'content': content_loaded}

    async def _load_users(self, users_data: List[Dict]) -> int:
        loaded = 0
        seen: Set[str] = set()
        for user_data in users_data:
            wallet_address = user_data.get('wallet_address')
            if not wallet_address:
                logger.warning("Skipping user without wallet_address")
                continue
            if wallet_address in seen:
                logger.warning(f"User {wallet_address} is listed more than once, keeping the first entry")
                continue
            seen.add(wallet_address)
            existing = await self.db.execute(
                select(User.id).where(User.wallet_address == wallet_address)
            )
            if existing.scalar_one_or_none():
                logger.debug(f"User {wallet_address} already exists, skipping")
                continue
            self.db.add(User(
                wallet_address=wallet_address,
                name=user_data.get('name') or "Anonymous",
                bio=user_data.get('bio'),
                avatar_url=user_data.get('avatar_url'),
                follower_count=user_data.get('follower_count', 0),
                following_count=user_data.get('following_count', 0),
                is_creator=user_data.get('is_creator', False),
            ))
            loaded += 1
        await self._commit_batch()
        return loaded

    async def _load_content(self, content_data: List[Dict]) -> int:
        loaded = 0
        pending = 0
        authors: Dict[str, UUID] = {}
        seen_ids: Set[UUID] = set()

        for item in content_data:
            try:
                content = await self._build_content(item, authors, seen_ids)
            except (KeyError, ValueError, ValidationError) as e:
                logger.error(f"Error processing content {item.get('id', 'unknown')}: {e}")
                continue
            if content is None:
                continue

            self.db.add(content)
            pending += 1
            if pending >= self.batch_size:
                await self._commit_batch()
                loaded += pending
                pending = 0
                logger.info(f"Loaded batch: {loaded} content items")

        if pending:
            await self._commit_batch()
            loaded += pending
        return loaded

    async def _build_content(self, item: Dict, authors: Dict[str, UUID], seen_ids: Set[UUID]):
        content_id = UUID(item['id']) if item.get('id') else None
        # pending rows are not visible to db.get until flushed
        if content_id in seen_ids:
            logger.warning(f"Content {content_id} is listed more than once, keeping the first entry")
            return None
        if content_id and await self.db.get(Content, content_id) is not None:
            logger.debug(f"Content {content_id} already exists, skipping")
            return None

        wallet_address = item['author_wallet_address']
        if wallet_address not in authors:
            result = await self.db.execute(
                select(User.id).where(User.wallet_address == wallet_address)
            )
            author_id = result.scalar_one_or_none()
            if author_id is None:
                raise ValueError(f"Unknown author {wallet_address}")
            authors[wallet_address] = author_id

        media = _media_adapter.validate_python(item['media'])
        content = Content(
            author_id=authors[wallet_address],
            content_type=media.content_type,
            media=media_to_record(media),
            title=item['title'],
            description=item.get('description'),
            hashtags=normalize_hashtags(item.get('hashtags', [])),
            is_premium=item.get('is_premium', False),
            price=item.get('price'),
            is_active=item.get('is_active', True),
            view_count=item.get('view_count', 0),
            promoted_token_id=item.get('promoted_token_id'),
            is_on_chain=item.get('is_on_chain', False),
        )
        if content_id:
            content.id = content_id
            seen_ids.add(content_id)
        if item.get('created_at'):
            content.created_at = self._parse_datetime(item['created_at'])
        return content

    async def _commit_batch(self) -> None:
        try:
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Error committing batch: {e}")
            raise

    def _parse_datetime(self, date_string: str) -> datetime:
        if isinstance(date_string, datetime):
            parsed = date_string
        else:
            parsed = date_parser.parse(date_string)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
