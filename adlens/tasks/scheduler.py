"""
Background task scheduler using APScheduler
"""
import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.triggers.cron import CronTrigger

from adlens.core.config import settings

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler: BackgroundScheduler = None


def start_scheduler():
    """Initialize and start the scheduler"""
    global scheduler

    if scheduler is not None:
        return

    scheduler = BackgroundScheduler(timezone="UTC")

    # ============================================
    # Scrape run sync (every minute)
    # ============================================
    scheduler.add_job(
        func=sync_scrapes_job,
        trigger=IntervalTrigger(minutes=settings.SYNC_SCRAPES_INTERVAL_MINUTES),
        id="sync_scrapes",
        name="Sync running scrape runs",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    # ============================================
    # Daily Jobs
    # ============================================

    # Scheduled follow scrapes - daily at 2 AM UTC
    scheduler.add_job(
        func=scrape_due_advertisers_job,
        trigger=CronTrigger(hour=settings.SCRAPE_DUE_HOUR_UTC, minute=0),
        id="scrape_due_advertisers",
        name="Start scrapes for due advertisers",
        replace_existing=True,
    )

    scheduler.start()
    logger.info(f"Scheduler started with {len(scheduler.get_jobs())} jobs")


def stop_scheduler():
    """Stop the scheduler"""
    global scheduler

    if scheduler is not None:
        scheduler.shutdown()
        scheduler = None
        logger.info("Scheduler stopped")


# ============================================
# Job Functions
# ============================================

def sync_scrapes_job():
    """Sync running scrape runs"""
    try:
        # Import here to avoid circular imports
        from adlens.tasks.scrape_tasks import sync_running_scrapes
        result = sync_running_scrapes()
        if result.synced or result.failed:
            logger.info(f"Scrape sync completed: {result.synced} synced, {result.failed} failed")
    except Exception as e:
        logger.error(f"Scrape sync failed: {e}")


def scrape_due_advertisers_job():
    """Start scheduled scrapes"""
    logger.info("Running scrape-due-advertisers job...")
    try:
        from adlens.tasks.scrape_tasks import scrape_due_advertisers
        result = scrape_due_advertisers()
        logger.info(f"Scrape-due-advertisers completed: {result.started}/{result.due} started")
    except Exception as e:
        logger.error(f"Scrape-due-advertisers failed: {e}")
