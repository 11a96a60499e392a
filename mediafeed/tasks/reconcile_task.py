from loguru import logger

from mediafeed.db.database import get_db_session
from mediafeed.services.social_service import SocialService


async def reconcile_follow_counters() -> int:
    try:
        async with get_db_session() as session:
            fixed = await SocialService(session).reconcile_counters()
    except Exception as e:
        logger.exception(f"Error reconciling follow counters: {e}")
        raise

    logger.info(f"Follow counters reconciled, {fixed} users corrected")
    return fixed
