"""
Advertiser and user-advertiser (follow link) models
"""
from sqlalchemy import (
    Column, Integer, String, Enum, DateTime, JSON, ForeignKey, UniqueConstraint, Index
)
from sqlalchemy.orm import relationship

from adlens.models.base import BaseModel
from adlens.models.enums import ScrapeFrequency, FollowStatus


class Advertiser(BaseModel):
    """
    One tracked LinkedIn company. Scraped once on a shared schedule for all followers.

    Invariant: scrape_frequency is set iff at least one link is FOLLOWING,
    and next_scrape_at is set iff scrape_frequency is set.
    """

    __tablename__ = "advertisers"

    id = Column(Integer, primary_key=True, index=True)

    # ============================================
    # Identity
    # ============================================
    name = Column(String(255), nullable=False)
    linkedin_company_id = Column(String(50), nullable=True, index=True)
    linkedin_url = Column(String(500), nullable=True, index=True)
    logo_url = Column(String(1000), nullable=True)

    # ============================================
    # Aggregates (written by the storage engine)
    # ============================================
    total_ads_found = Column(Integer, default=0, nullable=False)
    last_scraped_at = Column(DateTime(timezone=True), nullable=True)

    # ============================================
    # Shared schedule (written by reconciler and sync)
    # ============================================
    scrape_frequency = Column(Enum(ScrapeFrequency), nullable=True)
    next_scrape_at = Column(DateTime(timezone=True), nullable=True, index=True)

    # ============================================
    # Scrape overrides
    # ============================================
    scrape_start_urls = Column(JSON, nullable=True)  # ["https://www.linkedin.com/ad-library/search?..."]
    results_limit = Column(Integer, nullable=True)

    # ============================================
    # Relationships
    # ============================================
    ads = relationship("Ad", back_populates="advertiser")
    scrape_runs = relationship("ScrapeRun", back_populates="advertiser")
    user_links = relationship("UserAdvertiser", back_populates="advertiser")

    @property
    def has_identifier(self) -> bool:
        return bool(
            (self.linkedin_company_id or "").strip()
            or (self.linkedin_url or "").strip()
            or self.scrape_start_urls
        )


class UserAdvertiser(BaseModel):
    """Per-user link to an advertiser: added -> following <-> archived"""

    __tablename__ = "user_advertisers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    advertiser_id = Column(Integer, ForeignKey("advertisers.id"), nullable=False, index=True)

    status = Column(Enum(FollowStatus), default=FollowStatus.ADDED, nullable=False, index=True)
    first_tracked_at = Column(DateTime(timezone=True), nullable=True)
    # Informational per-user copy; the advertiser row holds the real schedule
    next_scrape_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", back_populates="advertiser_links")
    advertiser = relationship("Advertiser", back_populates="user_links")

    __table_args__ = (
        UniqueConstraint("user_id", "advertiser_id", name="uq_user_advertiser"),
        Index("ix_user_advertisers_advertiser_status", "advertiser_id", "status"),
    )
