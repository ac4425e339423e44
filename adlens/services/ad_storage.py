"""
Ad Storage Service
Upserts scraped ads keyed by external id and refreshes advertiser aggregates
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from adlens.models.ad import Ad
from adlens.models.advertiser import Advertiser
from adlens.models.enums import JobType
from adlens.schemas.scrape import StoreAdsResult, TransformedAd
from adlens.services.apify.transform import transform_ad
from adlens.services.linkedin_url import extract_company_id

logger = logging.getLogger(__name__)

# Written on create and on INITIAL re-scrapes only
CREATIVE_FIELDS = (
    "format",
    "ad_library_url",
    "body_text",
    "headline",
    "call_to_action",
    "destination_url",
    "media_url",
    "media_data",
    "paid_by",
    "target_language",
    "target_location",
    "start_date",
)

# Refreshed on every scrape, including SCHEDULED ones
LIVENESS_FIELDS = (
    "end_date",
    "impressions",
    "impressions_estimate",
    "impressions_per_country",
    "country_impressions_estimate",
)


def naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Aware values (Postgres) are converted to UTC before dropping the offset"""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class AdStorageService:
    """
    Persists one dataset snapshot.

    Safe to call repeatedly with the same or a growing dataset: ads are matched
    on external_id, so a re-sync of an in-flight run only updates rows.
    """

    def __init__(self, db: Session):
        self.db = db

    def store_ads(
        self,
        raw_ads: List[Dict[str, Any]],
        advertiser_id: int,
        job_type: JobType,
        now: Optional[datetime] = None,
    ) -> StoreAdsResult:
        """
        Upsert every identifiable raw item, then update the advertiser.

        Returns:
            StoreAdsResult; skipped items count toward nothing but total_processed
            is the raw batch size
        """
        now = now or datetime.utcnow()
        result = StoreAdsResult(total_processed=len(raw_ads))

        transformed: List[TransformedAd] = []
        for raw in raw_ads:
            ad = transform_ad(raw, advertiser_id)
            if ad is None:
                continue
            transformed.append(ad)

            created = self._upsert_ad(ad, job_type, now)
            if created:
                result.ads_new += 1
            else:
                result.ads_updated += 1

        self._update_advertiser(advertiser_id, transformed, len(raw_ads), now)
        self.db.commit()

        logger.info(
            f"Stored ads for advertiser {advertiser_id} ({job_type.value}): "
            f"{result.ads_new} new, {result.ads_updated} updated, "
            f"{result.total_processed} in batch"
        )
        return result

    def _upsert_ad(self, data: TransformedAd, job_type: JobType, now: datetime) -> bool:
        """Insert or update a single ad; True when a row was created"""
        existing = self.db.query(Ad).filter(Ad.external_id == data.external_id).first()

        if existing and job_type == JobType.SCHEDULED:
            # Creative content is frozen once captured
            self._apply(existing, data, LIVENESS_FIELDS)
            existing.last_seen_at = max(naive_utc(existing.last_seen_at) or now, now)
            existing.updated_at = now
            return False

        if existing:
            existing.advertiser_id = data.advertiser_id
            self._apply(existing, data, CREATIVE_FIELDS + LIVENESS_FIELDS)
            existing.last_seen_at = max(naive_utc(existing.last_seen_at) or now, now)
            existing.updated_at = now
            return False

        ad = Ad(
            external_id=data.external_id,
            advertiser_id=data.advertiser_id,
            first_seen_at=now,
            last_seen_at=now,
            created_at=now,
            updated_at=now,
        )
        self._apply(ad, data, CREATIVE_FIELDS + LIVENESS_FIELDS)
        self.db.add(ad)
        # Visible to later lookups in the same batch (duplicate ids in one dataset)
        self.db.flush()
        return True

    @staticmethod
    def _apply(ad: Ad, data: TransformedAd, fields) -> None:
        for field in fields:
            value = getattr(data, field)
            if field == "country_impressions_estimate" and not value:
                value = None
            setattr(ad, field, value)

    def _update_advertiser(
        self,
        advertiser_id: int,
        ads: List[TransformedAd],
        batch_size: int,
        now: datetime,
    ) -> None:
        advertiser = self.db.get(Advertiser, advertiser_id)
        if advertiser is None:
            logger.warning(f"Advertiser {advertiser_id} not found, aggregates not updated")
            return

        advertiser.last_scraped_at = now
        # Snapshot of the current dataset, not a running total
        advertiser.total_ads_found = batch_size

        if not advertiser.logo_url:
            logo = next((a.advertiser_logo for a in ads if a.advertiser_logo), None)
            if logo:
                advertiser.logo_url = logo

        if not (advertiser.linkedin_company_id or "").strip():
            company_id = next(
                (cid for cid in (extract_company_id(a.advertiser_url) for a in ads) if cid),
                None,
            )
            if company_id:
                logger.info(f"Backfilled company id {company_id} for advertiser {advertiser_id}")
                advertiser.linkedin_company_id = company_id
