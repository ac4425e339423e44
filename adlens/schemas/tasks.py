"""
Schemas for the admin task log listing
"""
from typing import Any, Dict, Optional
from datetime import datetime
from pydantic import BaseModel

from adlens.models.task import TaskStatus


class TaskLogResponse(BaseModel):
    id: int
    task_name: str
    task_type: Optional[str] = None
    triggered_by: Optional[str] = None
    status: TaskStatus
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[int] = None
    message: Optional[str] = None
    error_message: Optional[str] = None
    items_processed: int = 0
    items_success: int = 0
    items_failed: int = 0
    output_data: Optional[Dict[str, Any]] = None  # e.g. {"reason": "monthly_budget_exceeded"}

    class Config:
        from_attributes = True
