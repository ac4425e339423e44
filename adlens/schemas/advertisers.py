"""
Schemas for advertiser add/follow flows
"""
from typing import Optional
from datetime import datetime

from pydantic import BaseModel

from adlens.models.enums import FollowStatus, ScrapeFrequency


class LimitCheck(BaseModel):
    allowed: bool
    current: int
    max: int


class PlanLimits(BaseModel):
    max_added_advertisers: int
    max_followed_advertisers: int
    refresh_frequency: ScrapeFrequency


class AddAdvertiserRequest(BaseModel):
    linkedin_url: str


class AdvertiserSummary(BaseModel):
    id: int
    name: str
    logo_url: Optional[str] = None
    total_ads_found: int = 0
    scrape_frequency: Optional[ScrapeFrequency] = None
    next_scrape_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserAdvertiserResponse(BaseModel):
    id: int
    status: FollowStatus
    next_scrape_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AddAdvertiserResponse(BaseModel):
    advertiser: AdvertiserSummary
    user_advertiser: UserAdvertiserResponse
    scrape_status: str  # started, skipped
    scrape_run_id: Optional[int] = None
