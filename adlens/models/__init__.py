"""
Database models for AdLens
"""
from adlens.models.base import Base, BaseModel, TimestampMixin
from adlens.models.enums import (
    ScrapeRunStatus, JobType, ScrapeFrequency, FollowStatus, AdFormat
)

# User models
from adlens.models.user import Plan, User

# Advertiser models
from adlens.models.advertiser import Advertiser, UserAdvertiser

# Ad models
from adlens.models.ad import Ad

# Scrape models
from adlens.models.scrape_run import ScrapeRun

# Task models
from adlens.models.task import TaskLog, TaskStatus


__all__ = [
    # Base
    "Base", "BaseModel", "TimestampMixin",

    # Enums
    "ScrapeRunStatus", "JobType", "ScrapeFrequency", "FollowStatus", "AdFormat",
    "TaskStatus",

    # User
    "Plan", "User",

    # Advertiser
    "Advertiser", "UserAdvertiser",

    # Ad
    "Ad",

    # Scrape
    "ScrapeRun",

    # Task
    "TaskLog",
]
