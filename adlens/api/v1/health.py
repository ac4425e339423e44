"""
Health check endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from adlens.core.config import settings
from adlens.core.deps import get_db
from adlens.models.enums import ScrapeRunStatus
from adlens.models.scrape_run import ScrapeRun

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
def health_check():
    """Process is up; reports whether the scrape provider and scheduler are configured"""
    from adlens.tasks import scheduler

    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "provider_configured": bool(settings.APIFY_API_TOKEN),
        "scheduler_running": scheduler.scheduler is not None,
    }


@router.get("/db")
def database_health(db: Session = Depends(get_db)):
    """Database round trip plus the number of runs still in flight"""
    try:
        db.execute(text("SELECT 1"))
        running = db.query(ScrapeRun).filter(ScrapeRun.status == ScrapeRunStatus.RUNNING).count()
    except SQLAlchemyError as e:
        return {"status": "unhealthy", "database": "disconnected", "error": str(e)}

    return {"status": "healthy", "database": "connected", "running_scrapes": running}
