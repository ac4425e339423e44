"""
Scrape run model - one row per provider actor run
"""
from sqlalchemy import Column, Integer, String, Text, Float, DateTime, Enum, ForeignKey, Index
from sqlalchemy.orm import relationship

from adlens.models.base import BaseModel
from adlens.models.enums import ScrapeRunStatus, JobType


class ScrapeRun(BaseModel):
    """
    While RUNNING, completed_at / ads_new / ads_updated / cost_usd stay NULL;
    ads_found is refreshed on every sync. All four are set once the run is terminal.
    """

    __tablename__ = "scrape_runs"

    id = Column(Integer, primary_key=True, index=True)
    advertiser_id = Column(Integer, ForeignKey("advertisers.id"), nullable=False, index=True)

    status = Column(Enum(ScrapeRunStatus), default=ScrapeRunStatus.RUNNING, nullable=False, index=True)
    job_type = Column(Enum(JobType), default=JobType.INITIAL, nullable=False)

    # Provider identifiers
    apify_run_id = Column(String(100), nullable=True, index=True)
    apify_dataset_id = Column(String(100), nullable=True)

    # Counters
    ads_found = Column(Integer, default=0, nullable=False)
    ads_new = Column(Integer, nullable=True)
    ads_updated = Column(Integer, nullable=True)
    cost_usd = Column(Float, nullable=True)

    started_at = Column(DateTime(timezone=True), nullable=False, index=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    error_message = Column(Text, nullable=True)

    advertiser = relationship("Advertiser", back_populates="scrape_runs")

    __table_args__ = (
        Index("ix_scrape_runs_status_started", "status", "started_at"),
        Index("ix_scrape_runs_status_completed", "status", "completed_at"),
    )

    @property
    def is_terminal(self) -> bool:
        return self.status != ScrapeRunStatus.RUNNING

    @property
    def cost_usd_rounded(self):
        return round(self.cost_usd, 2) if self.cost_usd is not None else None
