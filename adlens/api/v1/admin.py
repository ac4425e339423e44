"""
Admin endpoints: budget, manual run sync, scrape run and task log listings
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, HTTPException, status as http_status
from sqlalchemy.orm import Session

from adlens.core.config import settings
from adlens.core.deps import get_db, get_provider, require_admin
from adlens.core.exceptions import NotFoundError
from adlens.models.enums import ScrapeRunStatus
from adlens.models.scrape_run import ScrapeRun
from adlens.models.task import TaskLog, TaskStatus
from adlens.models.user import User
from adlens.schemas.common import DataResponse, ListResponse
from adlens.schemas.scrape import BudgetResponse, ScrapeRunResponse, SyncResult
from adlens.schemas.tasks import TaskLogResponse
from adlens.services.budget import check_budget
from adlens.services.scrape_sync import ScrapeSyncService
from adlens.api.v1.scrape import rounded

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/budget", response_model=DataResponse[BudgetResponse])
def get_budget(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Current month scrape spend and limit"""
    budget = check_budget(db, limit=settings.MONTHLY_SPEND_LIMIT_USD)
    return DataResponse(
        data=BudgetResponse(
            current_spend=round(budget.current_spend, 2),
            limit=budget.limit,
            remaining=round(budget.remaining, 2),
            ok=budget.ok,
        )
    )


@router.get("/sync-run", response_model=DataResponse[SyncResult])
def sync_run(
    scrape_run_id: Optional[int] = None,
    apify_run_id: Optional[str] = None,
    db: Session = Depends(get_db),
    provider=Depends(get_provider),
    current_user: User = Depends(require_admin),
):
    """
    Sync one run by internal id or provider run id.
    Useful to backfill ads when an earlier sync saw an empty dataset.
    """
    if scrape_run_id is None and not (apify_run_id or "").strip():
        raise HTTPException(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            detail="Provide scrape_run_id or apify_run_id",
        )

    service = ScrapeSyncService(db, provider)
    if scrape_run_id is not None:
        result = service.sync(scrape_run_id)
    else:
        result = service.sync_by_provider_run_id(apify_run_id.strip())

    if result is None:
        raise NotFoundError("Scrape run not found")
    return DataResponse(data=rounded(result))


@router.get("/scrape-runs", response_model=ListResponse[ScrapeRunResponse])
def list_scrape_runs(
    advertiser_id: Optional[int] = None,
    status: Optional[ScrapeRunStatus] = None,
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Scrape runs, newest first, filtered by advertiser and/or status"""
    query = db.query(ScrapeRun)
    if advertiser_id is not None:
        query = query.filter(ScrapeRun.advertiser_id == advertiser_id)
    if status:
        query = query.filter(ScrapeRun.status == status)

    total = query.count()
    runs = query.order_by(ScrapeRun.started_at.desc()).limit(limit).all()

    return ListResponse(
        data=[ScrapeRunResponse.from_run(run) for run in runs],
        total=total,
        limit=limit,
    )


@router.get("/task-logs", response_model=ListResponse[TaskLogResponse])
def list_task_logs(
    limit: int = Query(50, ge=1, le=200),
    task_name: Optional[str] = None,
    status: Optional[TaskStatus] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Recent scheduler task logs"""
    query = db.query(TaskLog)
    if task_name:
        query = query.filter(TaskLog.task_name == task_name)
    if status:
        query = query.filter(TaskLog.status == status)

    total = query.count()
    logs = query.order_by(TaskLog.id.desc()).limit(limit).all()

    return ListResponse(
        data=[TaskLogResponse.model_validate(log) for log in logs],
        total=total,
        limit=limit,
    )
