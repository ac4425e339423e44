"""
Monthly scrape spend guard
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from adlens.core.config import settings
from adlens.models.enums import ScrapeRunStatus
from adlens.models.scrape_run import ScrapeRun
from adlens.schemas.scrape import BudgetStatus

logger = logging.getLogger(__name__)


def month_bounds(now: datetime):
    """[start of month, start of next month) for a naive UTC timestamp"""
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


def get_monthly_spend(db: Session, now: Optional[datetime] = None) -> float:
    """Sum of cost_usd over runs completed in the current calendar month"""
    now = now or datetime.utcnow()
    start, end = month_bounds(now)

    total = db.query(func.coalesce(func.sum(ScrapeRun.cost_usd), 0.0)).filter(
        ScrapeRun.status == ScrapeRunStatus.COMPLETED,
        ScrapeRun.completed_at >= start,
        ScrapeRun.completed_at < end,
    ).scalar()

    return float(total or 0.0)


def check_budget(
    db: Session,
    limit: Optional[float] = None,
    now: Optional[datetime] = None,
) -> BudgetStatus:
    """
    Advisory check done before starting a run.

    Runs already in flight are not counted and are never stopped; spend can
    overshoot by the cost of those runs.
    """
    limit = settings.MONTHLY_SPEND_LIMIT_USD if limit is None else limit
    current_spend = get_monthly_spend(db, now=now)
    status = BudgetStatus(ok=current_spend < limit, current_spend=current_spend, limit=limit)

    if not status.ok:
        logger.warning(f"Monthly scrape budget reached: ${current_spend:.2f} of ${limit:.2f}")
    return status
