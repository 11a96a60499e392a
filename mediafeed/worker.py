import asyncio
import sys

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger

from mediafeed.core.config import WorkerSettings
from mediafeed.db.database import close_engine
from mediafeed.tasks.reconcile_task import reconcile_follow_counters


def create_scheduler(settings: WorkerSettings) -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        reconcile_follow_counters,
        "interval",
        minutes=settings.reconcile_interval_minutes,
        id="reconcile_follow_counters",
        max_instances=1,
        coalesce=True,
    )
    return scheduler


async def main():
    settings = WorkerSettings()
    scheduler = create_scheduler(settings)
    scheduler.start()
    logger.info(f"Worker started, reconciling every {settings.reconcile_interval_minutes} minutes")

    try:
        if settings.reconcile_at_startup:
            await reconcile_follow_counters()
        while True:
            await asyncio.sleep(3600)
    finally:
        scheduler.shutdown(wait=False)
        await close_engine()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Worker stopped by user")
        sys.exit(0)
