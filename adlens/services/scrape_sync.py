"""
Scrape Sync Service
Pulls the provider's current state for a scrape run into the database
"""
import logging
import time
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.orm import Session

from adlens.core.config import settings
from adlens.core.exceptions import ProviderError
from adlens.models.advertiser import Advertiser
from adlens.models.enums import (
    JobType,
    ScrapeRunStatus,
    FREQUENCY_INTERVAL_DAYS,
)
from adlens.models.scrape_run import ScrapeRun
from adlens.schemas.scrape import BatchSyncItem, BatchSyncResult, SyncResult
from adlens.services.ad_storage import AdStorageService
from adlens.services.apify.client import SUCCEEDED, is_terminal_status

logger = logging.getLogger(__name__)


class ScrapeSyncService:
    """
    Service for syncing scrape runs with the provider.

    `sync` can be called any number of times for the same run, from the status
    poll, the cron sweep or the admin tool. There is no lock: ad upserts are
    idempotent per external id and the run row is overwritten with values
    derived from the same provider state, so the last write wins.
    """

    def __init__(self, db: Session, provider, cost_per_ad: Optional[float] = None):
        self.db = db
        self.provider = provider
        self.cost_per_ad = (
            settings.SCRAPE_COST_PER_AD_USD if cost_per_ad is None else cost_per_ad
        )
        self.storage = AdStorageService(db)

    # ========================================
    # Single run
    # ========================================

    def sync(self, scrape_run_id: int, now: Optional[datetime] = None) -> Optional[SyncResult]:
        """
        Sync one run.

        Returns:
            SyncResult, or None when the run is unknown or has no provider run id

        Raises:
            ProviderError: status or dataset call failed; the run is left untouched
        """
        run = self.db.get(ScrapeRun, scrape_run_id)
        if run is None or not run.apify_run_id:
            return None

        run_status = self.provider.get_run_status(run.apify_run_id)
        dataset_id = run.apify_dataset_id or run_status.dataset_id

        if not dataset_id:
            # Provider has not allocated the dataset yet
            return SyncResult(
                status=ScrapeRunStatus.RUNNING,
                ads_found=run.ads_found or 0,
                run_status=run_status.status,
            )

        was_terminal = run.status != ScrapeRunStatus.RUNNING
        items = self.provider.get_dataset_items(dataset_id)
        now = now or datetime.utcnow()
        stored = self.storage.store_ads(items, run.advertiser_id, run.job_type, now=now)

        run.apify_dataset_id = dataset_id
        # Current dataset size; can go down if the provider reports fewer items
        run.ads_found = len(items)

        terminal = is_terminal_status(run_status.status)
        cost_usd = None
        if terminal:
            succeeded = run_status.status == SUCCEEDED
            cost_usd = round(len(items) * self.cost_per_ad, 6)

            run.status = ScrapeRunStatus.COMPLETED if succeeded else ScrapeRunStatus.FAILED
            run.ads_new = stored.ads_new
            run.ads_updated = stored.ads_updated
            run.cost_usd = cost_usd
            if not was_terminal or run.completed_at is None:
                run.completed_at = now
            run.error_message = (
                None if succeeded else f"Apify run ended with status: {run_status.status}"
            )

            # Re-syncs of a finished run keep the schedule set by the first one
            if succeeded and run.job_type == JobType.SCHEDULED and not was_terminal:
                self._advance_schedule(run.advertiser_id, now)

            logger.info(
                f"Scrape run {run.id} finished as {run.status.value} "
                f"({len(items)} ads, ${cost_usd:.4f})"
            )

        self.db.commit()

        return SyncResult(
            status=run.status if terminal else ScrapeRunStatus.RUNNING,
            ads_found=len(items),
            ads_new=stored.ads_new if terminal else None,
            ads_updated=stored.ads_updated if terminal else None,
            cost_usd=cost_usd,
            run_status=run_status.status,
        )

    def _advance_schedule(self, advertiser_id: int, now: datetime) -> None:
        advertiser = self.db.get(Advertiser, advertiser_id)
        if advertiser is None:
            return

        days = FREQUENCY_INTERVAL_DAYS.get(advertiser.scrape_frequency)
        if days is None:
            # No frequency (or manual): leave the schedule alone
            return

        advertiser.next_scrape_at = now + timedelta(days=days)
        advertiser.last_scraped_at = now
        logger.info(f"Next scheduled scrape for advertiser {advertiser_id}: {advertiser.next_scrape_at}")

    def sync_by_provider_run_id(self, apify_run_id: str) -> Optional[SyncResult]:
        run = self.db.query(ScrapeRun).filter(ScrapeRun.apify_run_id == apify_run_id).first()
        if run is None:
            return None
        return self.sync(run.id)

    # ========================================
    # Batch
    # ========================================

    def sync_all_running(
        self,
        max_age_hours: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> BatchSyncResult:
        """
        Sync every RUNNING run started within the recency window, one at a time.

        Older runs are presumed abandoned and left for manual investigation.
        A failure on one run is recorded in the result and does not stop the rest.
        """
        now = now or datetime.utcnow()
        max_age_hours = settings.SYNC_RUN_MAX_AGE_HOURS if max_age_hours is None else max_age_hours
        cutoff = now - timedelta(hours=max_age_hours)

        run_ids = [
            run_id for (run_id,) in self.db.query(ScrapeRun.id).filter(
                ScrapeRun.status == ScrapeRunStatus.RUNNING,
                ScrapeRun.started_at >= cutoff,
            ).order_by(ScrapeRun.started_at).all()
        ]

        result = BatchSyncResult()
        for run_id in run_ids:
            try:
                synced = self.sync(run_id)
                result.synced += 1
                result.results.append(BatchSyncItem(
                    id=run_id,
                    status=synced.status if synced else None,
                    ads_found=synced.ads_found if synced else None,
                ))
            except ProviderError as e:
                self.db.rollback()
                logger.error(f"Provider error syncing scrape run {run_id}: {e}")
                result.failed += 1
                result.results.append(BatchSyncItem(id=run_id, error=str(e)))
            except Exception as e:
                self.db.rollback()
                logger.exception(f"Failed to sync scrape run {run_id}: {e}")
                result.failed += 1
                result.results.append(BatchSyncItem(id=run_id, error=str(e)))

        if run_ids:
            logger.info(f"Batch sync: {result.synced} synced, {result.failed} failed")
        return result

    # ========================================
    # Polling
    # ========================================

    def poll_until_terminal(
        self,
        scrape_run_id: int,
        interval: Optional[float] = None,
        max_attempts: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> Optional[SyncResult]:
        """
        Call `sync` until the run is completed/failed or attempts run out.

        Returns the last SyncResult (still RUNNING if attempts were exhausted).
        """
        interval = settings.POLL_INTERVAL_SECONDS if interval is None else interval
        max_attempts = settings.POLL_MAX_ATTEMPTS if max_attempts is None else max_attempts

        result = None
        for attempt in range(1, max_attempts + 1):
            result = self.sync(scrape_run_id)
            if result is None or result.status != ScrapeRunStatus.RUNNING:
                return result

            logger.debug(
                f"Scrape run {scrape_run_id} still running "
                f"({result.ads_found} ads, attempt {attempt}/{max_attempts})"
            )
            if attempt < max_attempts:
                sleep(interval)

        logger.warning(f"Scrape run {scrape_run_id} not finished after {max_attempts} attempts")
        return result
