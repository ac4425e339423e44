"""
Scrape run endpoints: start, poll status, active banner
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from adlens.core.deps import get_db, get_provider, get_current_user
from adlens.core.exceptions import AdLensError, NotFoundError, ProviderError
from adlens.models.advertiser import Advertiser
from adlens.models.enums import JobType, ScrapeRunStatus
from adlens.models.scrape_run import ScrapeRun
from adlens.models.user import User
from adlens.schemas.common import DataResponse
from adlens.schemas.scrape import ActiveScrapeResponse, ScrapeRunResponse, SyncResult
from adlens.services.scrape_runs import start_scrape_run
from adlens.services.scrape_sync import ScrapeSyncService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scrape", tags=["Scrape"])


def rounded(result: SyncResult) -> SyncResult:
    """Cost in cents for API consumers"""
    if result.cost_usd is None:
        return result
    return result.model_copy(update={"cost_usd": round(result.cost_usd, 2)})


@router.post("/{advertiser_id}", response_model=DataResponse[ScrapeRunResponse])
def start_scrape(
    advertiser_id: int,
    db: Session = Depends(get_db),
    provider=Depends(get_provider),
    current_user: User = Depends(get_current_user),
):
    """Start an initial scrape for one advertiser (budget permitting)"""
    advertiser = db.get(Advertiser, advertiser_id)
    if advertiser is None:
        raise NotFoundError(f"Advertiser {advertiser_id} not found")

    run = start_scrape_run(db, provider, advertiser, job_type=JobType.INITIAL)
    return DataResponse(
        message=f"Scrape started for {advertiser.name}",
        data=ScrapeRunResponse.from_run(run),
    )


@router.get("/status/{run_id}", response_model=DataResponse[SyncResult])
def scrape_status(
    run_id: int,
    db: Session = Depends(get_db),
    provider=Depends(get_provider),
    current_user: User = Depends(get_current_user),
):
    """Sync the run from the provider and return its progress"""
    run = db.get(ScrapeRun, run_id)
    if run is None:
        raise NotFoundError(f"Scrape run {run_id} not found")
    if not run.apify_run_id:
        raise AdLensError("Scrape run has no provider run id", code="NO_PROVIDER_RUN")

    result = ScrapeSyncService(db, provider).sync(run_id)
    return DataResponse(data=rounded(result))


@router.get("/active", response_model=ActiveScrapeResponse)
def active_scrapes(
    db: Session = Depends(get_db),
    provider=Depends(get_provider),
):
    """
    Whether any scrape is running. Syncs each running run first so progress
    shows up even when the cron sweep has not run yet.
    """
    service = ScrapeSyncService(db, provider)
    running_ids = [
        run_id for (run_id,) in db.query(ScrapeRun.id).filter(
            ScrapeRun.status == ScrapeRunStatus.RUNNING
        ).order_by(ScrapeRun.started_at.desc()).all()
    ]

    for run_id in running_ids:
        try:
            service.sync(run_id)
        except ProviderError as e:
            db.rollback()
            logger.error(f"Active endpoint sync failed for run {run_id}: {e}")

    running = db.query(ScrapeRun).filter(
        ScrapeRun.status == ScrapeRunStatus.RUNNING
    ).order_by(ScrapeRun.started_at.desc()).first()

    return ActiveScrapeResponse(
        active=running is not None,
        ads_found=running.ads_found if running else 0,
    )
