"""
Plan limits for add/follow and the shared advertiser scrape schedule
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from adlens.models.advertiser import Advertiser, UserAdvertiser
from adlens.models.enums import (
    FollowStatus,
    ScrapeFrequency,
    FREQUENCY_INTERVAL_DAYS,
    FREQUENCY_PRIORITY,
)
from adlens.models.user import User
from adlens.schemas.advertisers import LimitCheck, PlanLimits

logger = logging.getLogger(__name__)


def get_user_plan_limits(db: Session, user_id: int) -> Optional[PlanLimits]:
    """User overrides win over plan values; None for an unknown user"""
    user = db.query(User).options(joinedload(User.plan)).filter(User.id == user_id).first()
    if not user:
        return None

    plan = user.plan
    return PlanLimits(
        max_added_advertisers=(
            user.max_added_advertisers
            if user.max_added_advertisers is not None
            else plan.max_added_advertisers
        ),
        max_followed_advertisers=(
            user.max_followed_advertisers
            if user.max_followed_advertisers is not None
            else plan.max_followed_advertisers
        ),
        refresh_frequency=user.effective_frequency,
    )


def _count_links(db: Session, user_id: int, *statuses: FollowStatus) -> int:
    return db.query(UserAdvertiser).filter(
        UserAdvertiser.user_id == user_id,
        UserAdvertiser.status.in_(statuses),
    ).count()


def can_add_advertiser(db: Session, user_id: int) -> LimitCheck:
    """Added and followed advertisers both count toward the add limit"""
    limits = get_user_plan_limits(db, user_id)
    if not limits:
        return LimitCheck(allowed=False, current=0, max=0)

    current = _count_links(db, user_id, FollowStatus.ADDED, FollowStatus.FOLLOWING)
    maximum = limits.max_added_advertisers
    return LimitCheck(allowed=current < maximum, current=current, max=maximum)


def can_follow_advertiser(db: Session, user_id: int) -> LimitCheck:
    limits = get_user_plan_limits(db, user_id)
    if not limits:
        return LimitCheck(allowed=False, current=0, max=0)

    current = _count_links(db, user_id, FollowStatus.FOLLOWING)
    maximum = limits.max_followed_advertisers
    return LimitCheck(allowed=current < maximum, current=current, max=maximum)


def best_frequency(frequencies) -> Optional[ScrapeFrequency]:
    """Most frequent scheduled tier among followers; None when nobody needs a schedule"""
    best = None
    for frequency in frequencies:
        frequency = ScrapeFrequency(frequency or ScrapeFrequency.MANUAL)
        if best is None or FREQUENCY_PRIORITY[frequency] > FREQUENCY_PRIORITY[best]:
            best = frequency

    if best not in FREQUENCY_INTERVAL_DAYS:
        return None
    return best


def recalculate_advertiser_schedule(
    db: Session,
    advertiser_id: int,
    now: Optional[datetime] = None,
) -> Optional[ScrapeFrequency]:
    """
    Rebuild the shared schedule from every FOLLOWING link.

    Must run after each follow-state transition. Overwrites the advertiser's
    scrape_frequency and next_scrape_at unconditionally; links keep their own
    next_scrape_at from their user's frequency. A scheduled run completing at
    the same time may overwrite this in turn, and the next reconcile or sync corrects it.

    Returns:
        The winning frequency, or None when the schedule was cleared
    """
    now = now or datetime.utcnow()

    advertiser = db.get(Advertiser, advertiser_id)
    if advertiser is None:
        logger.warning(f"Cannot recalculate schedule: advertiser {advertiser_id} not found")
        return None

    followers = db.query(UserAdvertiser).options(
        joinedload(UserAdvertiser.user).joinedload(User.plan)
    ).filter(
        UserAdvertiser.advertiser_id == advertiser_id,
        UserAdvertiser.status == FollowStatus.FOLLOWING,
    ).all()

    best = best_frequency(link.user.effective_frequency for link in followers)

    if best is None:
        advertiser.scrape_frequency = None
        advertiser.next_scrape_at = None
    else:
        advertiser.scrape_frequency = best
        advertiser.next_scrape_at = now + timedelta(days=FREQUENCY_INTERVAL_DAYS[best])

    db.flush()
    logger.info(
        f"Recalculated schedule for advertiser {advertiser_id}: "
        f"{len(followers)} followers -> {best.value if best else 'none'}"
    )
    return best
