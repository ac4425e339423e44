"""
Scrape sweeps run by the scheduler and the cron endpoints
"""
import logging
from datetime import datetime
from typing import Optional

from adlens.core.database import SessionLocal
from adlens.models import TaskLog, TaskStatus
from adlens.schemas.scrape import BatchSyncResult, DueStartResult
from adlens.services.apify.client import get_apify_client
from adlens.services.scrape_runs import start_due_advertisers
from adlens.services.scrape_sync import ScrapeSyncService

logger = logging.getLogger(__name__)


def log_task_start(task_name: str, task_type: str = "sync", triggered_by: str = "scheduler") -> TaskLog:
    """Create task log entry"""
    db = SessionLocal()
    try:
        task = TaskLog(
            task_name=task_name,
            task_type=task_type,
            status=TaskStatus.RUNNING,
            started_at=datetime.utcnow(),
            triggered_by=triggered_by,
        )
        db.add(task)
        db.commit()
        db.refresh(task)
        return task
    finally:
        db.close()


def log_task_complete(
    task_id: int,
    success: bool,
    message: Optional[str] = None,
    error_message: Optional[str] = None,
    items_processed: int = 0,
    items_success: int = 0,
    items_failed: int = 0,
    output_data: Optional[dict] = None,
):
    """Update task log on completion"""
    db = SessionLocal()
    try:
        task = db.query(TaskLog).filter(TaskLog.id == task_id).first()
        if task:
            task.finish(success)
            task.message = message
            task.error_message = error_message
            task.items_processed = items_processed
            task.items_success = items_success
            task.items_failed = items_failed
            task.output_data = output_data
            db.commit()
    finally:
        db.close()


def sync_running_scrapes(triggered_by: str = "scheduler") -> BatchSyncResult:
    """Sync every recent RUNNING scrape run"""
    task = log_task_start("sync_scrapes", "sync", triggered_by)

    db = SessionLocal()
    provider = get_apify_client()
    try:
        result = ScrapeSyncService(db, provider).sync_all_running()
        log_task_complete(
            task.id,
            success=True,
            message=f"Synced {result.synced} runs, {result.failed} failed",
            items_processed=result.synced + result.failed,
            items_success=result.synced,
            items_failed=result.failed,
        )
        return result
    except Exception as e:
        logger.exception(f"sync_scrapes failed: {e}")
        log_task_complete(task.id, success=False, error_message=str(e))
        raise
    finally:
        provider.close()
        db.close()


def scrape_due_advertisers(triggered_by: str = "scheduler") -> DueStartResult:
    """Start scheduled scrapes for advertisers whose next_scrape_at has passed"""
    task = log_task_start("scrape_due_advertisers", "scrape", triggered_by)

    db = SessionLocal()
    provider = get_apify_client()
    try:
        result = start_due_advertisers(db, provider)
        failed = sum(1 for item in result.results if item.error and not item.started)
        log_task_complete(
            task.id,
            success=True,
            message=(
                f"{result.due} due, {result.started} started, {result.skipped} skipped"
                + (f" ({result.reason})" if result.reason else "")
            ),
            items_processed=result.due,
            items_success=result.started,
            items_failed=failed,
            output_data={"reason": result.reason} if result.reason else None,
        )
        return result
    except Exception as e:
        logger.exception(f"scrape_due_advertisers failed: {e}")
        log_task_complete(task.id, success=False, error_message=str(e))
        raise
    finally:
        provider.close()
        db.close()
