"""
Ad model - one row per LinkedIn Ads Library ad
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, ForeignKey, Index
from sqlalchemy.orm import relationship

from adlens.models.base import BaseModel


class Ad(BaseModel):
    """
    Ads are keyed by the provider's external id, which is globally unique.

    Creative fields are captured on first sight (or on an INITIAL re-scrape);
    SCHEDULED scrapes only refresh the liveness fields.
    """

    __tablename__ = "ads"

    id = Column(Integer, primary_key=True, index=True)
    external_id = Column(String(100), unique=True, nullable=False, index=True)
    advertiser_id = Column(Integer, ForeignKey("advertisers.id"), nullable=False, index=True)

    # ============================================
    # Creative
    # ============================================
    format = Column(String(50), nullable=True, index=True)
    ad_library_url = Column(String(1000), nullable=True)
    body_text = Column(Text, nullable=True)
    headline = Column(Text, nullable=True)
    call_to_action = Column(String(255), nullable=True)
    destination_url = Column(Text, nullable=True)
    media_url = Column(Text, nullable=True)
    media_data = Column(JSON, nullable=True)  # tagged by "kind", see schemas.media
    paid_by = Column(String(255), nullable=True)
    target_language = Column(String(100), nullable=True)
    target_location = Column(Text, nullable=True)
    start_date = Column(DateTime(timezone=True), nullable=True)

    # ============================================
    # Liveness
    # ============================================
    end_date = Column(DateTime(timezone=True), nullable=True)
    impressions = Column(String(100), nullable=True)  # e.g. "10k-20k"
    impressions_estimate = Column(Integer, default=0, nullable=False)
    impressions_per_country = Column(JSON, nullable=True)  # raw [{"country", "impressions"}]
    country_impressions_estimate = Column(JSON, nullable=True)  # {"Netherlands": 13500}
    first_seen_at = Column(DateTime(timezone=True), nullable=True)
    last_seen_at = Column(DateTime(timezone=True), nullable=True, index=True)

    advertiser = relationship("Advertiser", back_populates="ads")

    __table_args__ = (
        Index("ix_ads_advertiser_last_seen", "advertiser_id", "last_seen_at"),
    )

    @property
    def media(self):
        """Decoded media payload variant, or None"""
        from adlens.schemas.media import decode_media
        return decode_media(self.media_data)
