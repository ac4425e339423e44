"""
Cron trigger endpoints (bearer CRON_SECRET)
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from adlens.core.deps import get_db, get_provider, verify_cron_secret
from adlens.schemas.scrape import BatchSyncResult, DueStartResult
from adlens.services.scrape_runs import start_due_advertisers
from adlens.services.scrape_sync import ScrapeSyncService

router = APIRouter(
    prefix="/cron",
    tags=["Cron"],
    dependencies=[Depends(verify_cron_secret)],
)


@router.get("/sync-scrapes", response_model=BatchSyncResult)
def sync_scrapes(
    db: Session = Depends(get_db),
    provider=Depends(get_provider),
):
    """Sync all recent RUNNING scrape runs"""
    return ScrapeSyncService(db, provider).sync_all_running()


@router.get("/scrape-due-advertisers", response_model=DueStartResult)
def scrape_due_advertisers(
    db: Session = Depends(get_db),
    provider=Depends(get_provider),
):
    """Start scheduled scrapes for advertisers whose next_scrape_at has passed"""
    return start_due_advertisers(db, provider)
