"""
Plan and user models
"""
from sqlalchemy import Column, Integer, String, Enum, ForeignKey
from sqlalchemy.orm import relationship

from adlens.models.base import BaseModel
from adlens.models.enums import ScrapeFrequency


class Plan(BaseModel):
    """Subscription plan with advertiser limits and refresh frequency"""

    __tablename__ = "plans"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False)
    display_name = Column(String(100), nullable=True)

    max_added_advertisers = Column(Integer, nullable=False, default=3)
    max_followed_advertisers = Column(Integer, nullable=False, default=0)
    refresh_frequency = Column(
        Enum(ScrapeFrequency),
        default=ScrapeFrequency.MANUAL,
        nullable=False
    )

    users = relationship("User", back_populates="plan")


class User(BaseModel):
    """Application user (identity is managed by the external auth provider)"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    plan_id = Column(Integer, ForeignKey("plans.id"), nullable=False, index=True)

    # Per-user overrides; NULL falls back to the plan value
    max_added_advertisers = Column(Integer, nullable=True)
    max_followed_advertisers = Column(Integer, nullable=True)
    refresh_frequency = Column(Enum(ScrapeFrequency), nullable=True)

    plan = relationship("Plan", back_populates="users")
    advertiser_links = relationship(
        "UserAdvertiser", back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def effective_frequency(self) -> ScrapeFrequency:
        return self.refresh_frequency or self.plan.refresh_frequency or ScrapeFrequency.MANUAL
