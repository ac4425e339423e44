"""
Schemas for the scrape lifecycle: provider contract, transformer output,
storage/sync results and API responses
"""
from typing import Any, Dict, List, Optional
from datetime import datetime

from pydantic import BaseModel, model_validator

from adlens.models.enums import ScrapeRunStatus, JobType


# ============================================
# Provider contract
# ============================================

class RunConfig(BaseModel):
    """Actor input. Explicit start URLs win over the company id."""

    start_urls: List[str] = []
    company_id: Optional[str] = None
    results_limit: Optional[int] = None

    @model_validator(mode="after")
    def _require_target(self):
        if not self.start_urls and not (self.company_id or "").strip():
            raise ValueError("RunConfig needs start_urls or company_id")
        return self


class StartRunResult(BaseModel):
    run_id: str
    dataset_id: Optional[str] = None


class RunStatusResult(BaseModel):
    status: str
    dataset_id: Optional[str] = None


# ============================================
# Transformer / storage
# ============================================

class TransformedAd(BaseModel):
    """Normalized ad ready for upsert (media_data already encoded)"""

    external_id: str
    advertiser_id: int
    format: Optional[str] = None
    ad_library_url: Optional[str] = None
    body_text: Optional[str] = None
    headline: Optional[str] = None
    call_to_action: Optional[str] = None
    destination_url: Optional[str] = None
    media_url: Optional[str] = None
    media_data: Optional[Dict[str, Any]] = None
    paid_by: Optional[str] = None
    target_language: Optional[str] = None
    target_location: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    impressions: Optional[str] = None
    impressions_estimate: int = 0
    impressions_per_country: Optional[List[Dict[str, Any]]] = None
    country_impressions_estimate: Dict[str, int] = {}

    # Advertiser-level hints used for backfill, not stored on the ad
    advertiser_name: Optional[str] = None
    advertiser_url: Optional[str] = None
    advertiser_logo: Optional[str] = None


class StoreAdsResult(BaseModel):
    ads_new: int = 0
    ads_updated: int = 0
    total_processed: int = 0


# ============================================
# Sync / budget
# ============================================

class SyncResult(BaseModel):
    """Outcome of one sync call; counts and cost only once terminal"""

    status: ScrapeRunStatus
    ads_found: int
    ads_new: Optional[int] = None
    ads_updated: Optional[int] = None
    cost_usd: Optional[float] = None
    run_status: Optional[str] = None  # raw provider status


class BudgetStatus(BaseModel):
    ok: bool
    current_spend: float
    limit: float

    @property
    def remaining(self) -> float:
        return max(0.0, self.limit - self.current_spend)


class BatchSyncItem(BaseModel):
    id: int
    status: Optional[ScrapeRunStatus] = None
    ads_found: Optional[int] = None
    error: Optional[str] = None


class BatchSyncResult(BaseModel):
    synced: int = 0
    failed: int = 0
    results: List[BatchSyncItem] = []


class DueStartItem(BaseModel):
    advertiser_id: int
    started: bool = False
    scrape_run_id: Optional[int] = None
    error: Optional[str] = None


class DueStartResult(BaseModel):
    due: int = 0
    started: int = 0
    skipped: int = 0
    reason: Optional[str] = None
    results: List[DueStartItem] = []


# ============================================
# API responses
# ============================================

class ScrapeRunResponse(BaseModel):
    """Scrape run row; cost is rounded to cents on read"""

    id: int
    advertiser_id: int
    status: ScrapeRunStatus
    job_type: JobType
    apify_run_id: Optional[str] = None
    apify_dataset_id: Optional[str] = None
    ads_found: int = 0
    ads_new: Optional[int] = None
    ads_updated: Optional[int] = None
    cost_usd: Optional[float] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error_message: Optional[str] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_run(cls, run) -> "ScrapeRunResponse":
        resp = cls.model_validate(run)
        resp.cost_usd = run.cost_usd_rounded
        return resp


class BudgetResponse(BaseModel):
    current_spend: float
    limit: float
    remaining: float
    ok: bool


class ActiveScrapeResponse(BaseModel):
    active: bool
    ads_found: int = 0
