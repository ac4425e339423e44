"""
Background job bookkeeping: one TaskLog row per scheduler or cron sweep
"""
import enum
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, Enum

from adlens.models.base import BaseModel


class TaskStatus(str, enum.Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class TaskLog(BaseModel):
    """One execution of sync_scrapes or scrape_due_advertisers"""

    __tablename__ = "task_logs"

    id = Column(Integer, primary_key=True, index=True)

    task_name = Column(String(100), nullable=False, index=True)  # sync_scrapes, scrape_due_advertisers
    task_type = Column(String(50), nullable=True)  # sync, scrape
    triggered_by = Column(String(100), nullable=True)  # scheduler, cron, manual

    status = Column(Enum(TaskStatus), default=TaskStatus.RUNNING, index=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    duration_seconds = Column(Integer, nullable=True)

    message = Column(Text, nullable=True)
    error_message = Column(Text, nullable=True)

    # Runs synced, or advertisers due
    items_processed = Column(Integer, default=0)
    items_success = Column(Integer, default=0)
    items_failed = Column(Integer, default=0)

    output_data = Column(JSON, nullable=True)

    def finish(self, success: bool, now: Optional[datetime] = None):
        """Mark completed/failed and record the duration"""
        self.status = TaskStatus.COMPLETED if success else TaskStatus.FAILED
        self.completed_at = now or datetime.utcnow()
        if self.started_at:
            # SQLite hands back naive values, Postgres aware ones
            start = self.started_at
            if start.tzinfo is not None:
                start = start.astimezone(timezone.utc).replace(tzinfo=None)
            self.duration_seconds = int((self.completed_at - start).total_seconds())
