import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ctrlaltvibe.core.cache import TaggedCache
from ctrlaltvibe.core.config import settings
from ctrlaltvibe.core.database import SessionLocal
from ctrlaltvibe.services.sitemap import sitemap_service

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


async def regenerate_sitemap(cache: Optional[TaggedCache] = None):
    db = SessionLocal()
    try:
        path = sitemap_service.write(db, cache)
        logger.info(f"Daily sitemap regenerated at {path}")
    except Exception as e:
        logger.error(f"Error regenerating sitemap: {e}", exc_info=True)
    finally:
        db.close()


def start_scheduler(cache: Optional[TaggedCache] = None):
    if settings.TESTING:
        logger.info("Scheduler disabled in test environment")
        return

    if not scheduler.running:
        scheduler.add_job(
            regenerate_sitemap,
            'cron',
            hour=0,
            minute=0,
            kwargs={"cache": cache},
            id='daily_sitemap',
            name='Regenerate sitemap.xml',
            replace_existing=True
        )
        scheduler.start()
        logger.info("Scheduler started with daily sitemap job")


def stop_scheduler():
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Scheduler stopped")
