"""
Advertiser Service
Add, follow, unfollow, re-follow and remove for a user's advertiser list
"""
import logging
from datetime import datetime, timedelta
from typing import Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from adlens.core.config import settings
from adlens.core.exceptions import (
    AdLensError,
    BudgetExceeded,
    InvalidAdvertiserUrl,
    NotFoundError,
    ScheduleConflict,
)
from adlens.models.advertiser import Advertiser, UserAdvertiser
from adlens.models.enums import FollowStatus, JobType, ScrapeFrequency, FREQUENCY_INTERVAL_DAYS
from adlens.models.scrape_run import ScrapeRun
from adlens.models.user import User
from adlens.services.ad_storage import naive_utc
from adlens.services.budget import check_budget
from adlens.services.linkedin_url import normalize_company_url, company_path_segment
from adlens.services.plan_limits import (
    can_add_advertiser,
    can_follow_advertiser,
    recalculate_advertiser_schedule,
)
from adlens.services.scrape_runs import start_scrape_run

logger = logging.getLogger(__name__)


def display_name_from_slug(slug: str) -> str:
    """'acme-corp' -> 'Acme corp'"""
    if not slug:
        return "Unknown"
    return slug[0].upper() + slug[1:].replace("-", " ")


class AdvertiserService:
    """
    Follow-state machine for user-advertiser links.

    Every check happens before any mutation; every transition touching a
    FOLLOWING link ends with a schedule recalculation for the advertiser.
    """

    def __init__(self, db: Session, provider=None):
        self.db = db
        self.provider = provider

    # ========================================
    # Lookups
    # ========================================

    def _get_link(self, user_id: int, link_id: int) -> UserAdvertiser:
        link = self.db.get(UserAdvertiser, link_id)
        # Other users' links are reported as missing
        if link is None or link.user_id != user_id:
            raise NotFoundError(f"UserAdvertiser {link_id} not found")
        return link

    def _get_user(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def find_existing_advertiser(self, normalized_url: str) -> Optional[Advertiser]:
        """Match by URL (with or without trailing slash), numeric company id or slug name"""
        segment = company_path_segment(normalized_url)
        conditions = [
            Advertiser.linkedin_url == normalized_url,
            Advertiser.linkedin_url == normalized_url.rstrip("/"),
        ]
        if segment and segment.isdigit():
            conditions.append(Advertiser.linkedin_company_id == segment)
        elif segment:
            conditions.append(func.lower(Advertiser.name) == segment.lower())

        return self.db.query(Advertiser).filter(or_(*conditions)).order_by(
            Advertiser.total_ads_found.desc()
        ).first()

    # ========================================
    # Add
    # ========================================

    def add_advertiser(
        self,
        user_id: int,
        linkedin_url: str,
    ) -> Tuple[Advertiser, UserAdvertiser, Optional[ScrapeRun]]:
        """
        Add an advertiser to the user's list.

        Known advertisers are linked without scraping. New advertisers are
        created, linked and get an INITIAL run.

        Raises:
            InvalidAdvertiserUrl, ScheduleConflict (LIMIT_REACHED, ALREADY_ADDED),
            BudgetExceeded (link already created), ProviderError (link already created)
        """
        normalized = normalize_company_url(linkedin_url)
        if not normalized:
            raise InvalidAdvertiserUrl(
                "Please enter a LinkedIn company page URL (e.g., linkedin.com/company/hubspot)"
            )

        self._get_user(user_id)
        add_check = can_add_advertiser(self.db, user_id)
        if not add_check.allowed:
            raise ScheduleConflict(
                "Advertiser limit reached",
                code=ScheduleConflict.LIMIT_REACHED,
                current=add_check.current,
                max=add_check.max,
            )

        existing = self.find_existing_advertiser(normalized)
        if existing:
            already = self.db.query(UserAdvertiser).filter(
                UserAdvertiser.user_id == user_id,
                UserAdvertiser.advertiser_id == existing.id,
            ).first()
            if already:
                raise ScheduleConflict(
                    "You've already added this advertiser",
                    code=ScheduleConflict.ALREADY_ADDED,
                    advertiser_id=existing.id,
                )

            link = self._create_link(user_id, existing.id)
            self.db.commit()
            logger.info(f"User {user_id} linked existing advertiser {existing.id}")
            return existing, link, None

        segment = company_path_segment(normalized) or "unknown"
        advertiser = Advertiser(
            name=display_name_from_slug(segment),
            linkedin_url=normalized,
            linkedin_company_id=segment if segment.isdigit() else None,
            total_ads_found=0,
        )
        self.db.add(advertiser)
        self.db.flush()

        link = self._create_link(user_id, advertiser.id)
        self.db.commit()
        logger.info(f"User {user_id} added new advertiser {advertiser.id} ({normalized})")

        budget = check_budget(self.db)
        if not budget.ok:
            raise BudgetExceeded(budget)

        if self.provider is None:
            raise AdLensError("No scrape provider configured", code="SCRAPE_FAILED")

        run = start_scrape_run(
            self.db, self.provider, advertiser,
            job_type=JobType.INITIAL,
            check_budget_first=False,
        )
        return advertiser, link, run

    def _create_link(self, user_id: int, advertiser_id: int) -> UserAdvertiser:
        link = UserAdvertiser(
            user_id=user_id,
            advertiser_id=advertiser_id,
            status=FollowStatus.ADDED,
            first_tracked_at=datetime.utcnow(),
        )
        self.db.add(link)
        self.db.flush()
        return link

    # ========================================
    # Follow state machine
    # ========================================

    def _require_followable(self, user: User) -> ScrapeFrequency:
        follow_check = can_follow_advertiser(self.db, user.id)
        if not follow_check.allowed:
            raise ScheduleConflict(
                "Follow limit reached",
                code=ScheduleConflict.LIMIT_REACHED,
                current=follow_check.current,
                max=follow_check.max,
            )

        frequency = user.effective_frequency
        if frequency not in FREQUENCY_INTERVAL_DAYS:
            raise ScheduleConflict(
                "Your plan does not include following advertisers",
                code=ScheduleConflict.MANUAL_PLAN,
            )
        return frequency

    def _start_following(self, link: UserAdvertiser, frequency: ScrapeFrequency, now: datetime):
        link.status = FollowStatus.FOLLOWING
        link.next_scrape_at = now + timedelta(days=FREQUENCY_INTERVAL_DAYS[frequency])
        self.db.flush()
        recalculate_advertiser_schedule(self.db, link.advertiser_id, now=now)
        self.db.commit()

    def follow(self, user_id: int, link_id: int, now: Optional[datetime] = None) -> UserAdvertiser:
        """added -> following"""
        now = now or datetime.utcnow()
        link = self._get_link(user_id, link_id)

        if link.status == FollowStatus.FOLLOWING:
            raise ScheduleConflict("Already following", code=ScheduleConflict.ALREADY_FOLLOWING)
        if link.status == FollowStatus.ARCHIVED:
            raise ScheduleConflict(
                "Archived advertisers must be re-followed",
                code=ScheduleConflict.ARCHIVED,
            )

        frequency = self._require_followable(link.user)
        self._start_following(link, frequency, now)
        logger.info(f"User {user_id} now follows advertiser {link.advertiser_id} ({frequency.value})")
        return link

    def unfollow(self, user_id: int, link_id: int, now: Optional[datetime] = None) -> UserAdvertiser:
        """following -> archived"""
        link = self._get_link(user_id, link_id)

        if link.status == FollowStatus.ARCHIVED:
            raise ScheduleConflict("Already archived", code=ScheduleConflict.ALREADY_ARCHIVED)
        if link.status != FollowStatus.FOLLOWING:
            raise ScheduleConflict(
                "Only followed advertisers can be unfollowed",
                code=ScheduleConflict.NOT_FOLLOWING,
            )

        link.status = FollowStatus.ARCHIVED
        link.next_scrape_at = None
        self.db.flush()
        recalculate_advertiser_schedule(self.db, link.advertiser_id, now=now)
        self.db.commit()
        logger.info(f"User {user_id} unfollowed advertiser {link.advertiser_id}")
        return link

    def refollow(
        self,
        user_id: int,
        link_id: int,
        now: Optional[datetime] = None,
    ) -> Tuple[UserAdvertiser, Optional[ScrapeRun]]:
        """
        archived -> following

        Starts a fresh scrape when the advertiser's data is older than
        REFOLLOW_STALE_DAYS and the budget allows. That scrape is best effort:
        failures are logged and the re-follow still succeeds.
        """
        now = now or datetime.utcnow()
        link = self._get_link(user_id, link_id)

        if link.status != FollowStatus.ARCHIVED:
            raise ScheduleConflict(
                "Only archived advertisers can be re-followed",
                code=ScheduleConflict.NOT_ARCHIVED,
            )

        frequency = self._require_followable(link.user)
        self._start_following(link, frequency, now)
        logger.info(f"User {user_id} re-followed advertiser {link.advertiser_id}")

        return link, self._refresh_if_stale(link.advertiser, now)

    def _refresh_if_stale(self, advertiser: Advertiser, now: datetime) -> Optional[ScrapeRun]:
        last_scraped = advertiser.last_scraped_at
        if last_scraped is not None:
            last_scraped = naive_utc(last_scraped)
            if now - last_scraped <= timedelta(days=settings.REFOLLOW_STALE_DAYS):
                return None

        if self.provider is None or not advertiser.has_identifier:
            return None

        try:
            return start_scrape_run(self.db, self.provider, advertiser, job_type=JobType.INITIAL, now=now)
        except BudgetExceeded:
            logger.info(f"Skipping re-follow scrape for advertiser {advertiser.id}: budget reached")
        except AdLensError as e:
            self.db.rollback()
            logger.error(f"Re-follow scrape start failed for advertiser {advertiser.id}: {e}")
        return None

    def remove(self, user_id: int, link_id: int, now: Optional[datetime] = None) -> int:
        """
        Delete a non-archived link from the user's list.

        Returns the advertiser id; the advertiser row itself is kept.
        """
        link = self._get_link(user_id, link_id)

        if link.status == FollowStatus.ARCHIVED:
            raise ScheduleConflict(
                "Archived advertisers cannot be removed",
                code=ScheduleConflict.ARCHIVED,
            )

        advertiser_id = link.advertiser_id
        self.db.delete(link)
        self.db.flush()
        recalculate_advertiser_schedule(self.db, advertiser_id, now=now)
        self.db.commit()
        logger.info(f"User {user_id} removed advertiser {advertiser_id} from their list")
        return advertiser_id
