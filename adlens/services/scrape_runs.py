"""
Starting scrape runs: single advertiser and the scheduled "due advertisers" sweep
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from adlens.core.config import settings
from adlens.core.exceptions import BudgetExceeded, ProviderError, ScheduleConflict
from adlens.models.advertiser import Advertiser
from adlens.models.enums import JobType, ScrapeRunStatus
from adlens.models.scrape_run import ScrapeRun
from adlens.schemas.scrape import DueStartItem, DueStartResult, RunConfig
from adlens.services.budget import check_budget

logger = logging.getLogger(__name__)

BUDGET_EXCEEDED_REASON = "monthly_budget_exceeded"


def build_run_config(advertiser: Advertiser) -> RunConfig:
    """
    Custom start URLs first, then the company id search, then the company page URL.

    Raises:
        ScheduleConflict(NO_IDENTIFIER): nothing to scrape with
    """
    start_urls = [u for u in (advertiser.scrape_start_urls or []) if isinstance(u, str) and u.strip()]
    company_id = (advertiser.linkedin_company_id or "").strip()
    linkedin_url = (advertiser.linkedin_url or "").strip()

    if start_urls:
        return RunConfig(start_urls=start_urls, results_limit=advertiser.results_limit)
    if company_id:
        return RunConfig(company_id=company_id, results_limit=advertiser.results_limit)
    if linkedin_url:
        return RunConfig(start_urls=[linkedin_url], results_limit=advertiser.results_limit)

    raise ScheduleConflict(
        f"Advertiser {advertiser.id} has no LinkedIn company id or URL",
        code=ScheduleConflict.NO_IDENTIFIER,
    )


def has_run_in_flight(db: Session, advertiser_id: int, now: Optional[datetime] = None) -> bool:
    """RUNNING rows older than the sync window are never synced again and do not count"""
    now = now or datetime.utcnow()
    cutoff = now - timedelta(hours=settings.SYNC_RUN_MAX_AGE_HOURS)
    return db.query(ScrapeRun.id).filter(
        ScrapeRun.advertiser_id == advertiser_id,
        ScrapeRun.status == ScrapeRunStatus.RUNNING,
        ScrapeRun.started_at >= cutoff,
    ).first() is not None


def start_scrape_run(
    db: Session,
    provider,
    advertiser: Advertiser,
    job_type: JobType = JobType.INITIAL,
    check_budget_first: bool = True,
    now: Optional[datetime] = None,
) -> ScrapeRun:
    """
    Start the actor for one advertiser and record a RUNNING ScrapeRun.

    Nothing is persisted when the budget check or the provider call fails.

    Raises:
        ScheduleConflict: advertiser has no identifier
        BudgetExceeded: monthly limit reached
        ProviderError: the provider did not start a run
    """
    config = build_run_config(advertiser)

    if check_budget_first:
        budget = check_budget(db, now=now)
        if not budget.ok:
            raise BudgetExceeded(budget)

    started = provider.start_run(config)

    run = ScrapeRun(
        advertiser_id=advertiser.id,
        status=ScrapeRunStatus.RUNNING,
        job_type=job_type,
        apify_run_id=started.run_id,
        apify_dataset_id=started.dataset_id,
        ads_found=0,
        started_at=now or datetime.utcnow(),
    )
    db.add(run)
    db.commit()
    db.refresh(run)

    logger.info(
        f"Started {job_type.value} scrape run {run.id} for advertiser {advertiser.id} "
        f"(provider run {started.run_id})"
    )
    return run


def start_due_advertisers(
    db: Session,
    provider,
    now: Optional[datetime] = None,
) -> DueStartResult:
    """
    Start a SCHEDULED run for every advertiser whose next_scrape_at has passed.

    The budget is checked once for the whole sweep. Advertisers without an
    identifier or with a run already in flight are skipped; a provider failure
    for one advertiser does not stop the others.
    """
    now = now or datetime.utcnow()

    due = db.query(Advertiser).filter(
        Advertiser.scrape_frequency.isnot(None),
        Advertiser.next_scrape_at.isnot(None),
        Advertiser.next_scrape_at <= now,
    ).order_by(Advertiser.next_scrape_at).all()

    result = DueStartResult(due=len(due))
    if not due:
        return result

    budget = check_budget(db, now=now)
    if not budget.ok:
        result.skipped = len(due)
        result.reason = BUDGET_EXCEEDED_REASON
        return result

    for advertiser in due:
        item = DueStartItem(advertiser_id=advertiser.id)

        if not advertiser.has_identifier:
            item.error = "no linkedin_company_id or linkedin_url"
            result.skipped += 1
            result.results.append(item)
            continue

        if has_run_in_flight(db, advertiser.id, now=now):
            item.error = "scrape already running"
            result.skipped += 1
            result.results.append(item)
            continue

        try:
            run = start_scrape_run(
                db, provider, advertiser,
                job_type=JobType.SCHEDULED,
                check_budget_first=False,
                now=now,
            )
            item.started = True
            item.scrape_run_id = run.id
            result.started += 1
        except ProviderError as e:
            db.rollback()
            logger.error(f"Scheduled scrape start failed for advertiser {advertiser.id}: {e}")
            item.error = str(e)
        result.results.append(item)

    logger.info(
        f"Due advertisers: {result.due} due, {result.started} started, {result.skipped} skipped"
    )
    return result
