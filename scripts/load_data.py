import argparse
import asyncio
import sys
from pathlib import Path

from loguru import logger

sys.path.insert(0, str(Path(__file__).parent.parent))

from mediafeed.db.database import close_engine, create_tables, get_db_session
from mediafeed.services.data_loader_service import DataLoaderService


def parse_args():
    parser = argparse.ArgumentParser(description="Seed users and content from a JSON export")
    parser.add_argument("json_file", type=Path, help='file shaped as {"users": [...], "content": [...]}')
    parser.add_argument("--batch-size", type=int, default=100, help="content rows per commit")
    parser.add_argument(
        "--skip-create-tables",
        action="store_true",
        help="assume the schema already exists",
    )
    return parser.parse_args()


async def seed(json_file: Path, batch_size: int, create_schema: bool) -> dict:
    if create_schema:
        await create_tables()
        logger.info("Database schema is ready")

    async with get_db_session() as session:
        loader = DataLoaderService(session, batch_size=batch_size)
        return await loader.load_from_json_file(str(json_file))


async def main():
    args = parse_args()

    if not args.json_file.exists():
        logger.error(f"File not found: {args.json_file}")
        sys.exit(1)

    logger.info(f"Seeding from {args.json_file} (batch size {args.batch_size})")

    try:
        result = await seed(args.json_file, args.batch_size, not args.skip_create_tables)
    except Exception as e:
        logger.exception(f"Seeding failed: {e}")
        sys.exit(1)
    finally:
        await close_engine()

    logger.success(f"Seeded {result['users']} users and {result['content']} content items")


if __name__ == "__main__":
    asyncio.run(main())
