import os

# Must be set before adlens.core.config builds its settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["APIFY_API_TOKEN"] = "test-token"
os.environ.pop("CRON_SECRET", None)

from datetime import datetime
from typing import Dict, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from adlens.core.database import Base
from adlens.core.exceptions import ProviderError
from adlens.models import (
    Advertiser,
    Plan,
    ScrapeFrequency,
    ScrapeRun,
    ScrapeRunStatus,
    JobType,
    User,
    UserAdvertiser,
    FollowStatus,
)
from adlens.schemas.scrape import RunConfig, RunStatusResult, StartRunResult


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


class FakeProvider:
    """In-memory stand-in for ApifyClient"""

    def __init__(self):
        self.run_id = "R1"
        self.start_dataset_id: Optional[str] = None
        self.status = "RUNNING"
        self.dataset_id: Optional[str] = None
        self.items: Dict[str, List[dict]] = {}
        self.fail_start = False
        self.fail_status = False

        self.started: List[RunConfig] = []
        self.status_calls: List[str] = []
        self.dataset_calls: List[str] = []

    def start_run(self, config: RunConfig) -> StartRunResult:
        if self.fail_start:
            raise ProviderError("Apify POST /acts/x/runs failed (500): boom", status_code=500)
        self.started.append(config)
        run_id = self.run_id if len(self.started) == 1 else f"{self.run_id}-{len(self.started)}"
        return StartRunResult(run_id=run_id, dataset_id=self.start_dataset_id)

    def get_run_status(self, run_id: str) -> RunStatusResult:
        self.status_calls.append(run_id)
        if self.fail_status:
            raise ProviderError("Apify GET /actor-runs failed (503)", status_code=503)
        return RunStatusResult(status=self.status, dataset_id=self.dataset_id)

    def get_dataset_items(self, dataset_id: str) -> List[dict]:
        self.dataset_calls.append(dataset_id)
        return list(self.items.get(dataset_id, []))

    def close(self):
        pass


@pytest.fixture
def provider():
    return FakeProvider()


# ============================================
# Factories
# ============================================

def make_plan(db, name="pro", frequency=ScrapeFrequency.WEEKLY, max_added=50, max_followed=25):
    plan = db.query(Plan).filter(Plan.name == name).first()
    if plan:
        return plan
    plan = Plan(
        name=name,
        display_name=name.title(),
        max_added_advertisers=max_added,
        max_followed_advertisers=max_followed,
        refresh_frequency=frequency,
    )
    db.add(plan)
    db.commit()
    return plan


def make_user(db, plan, email=None, **overrides):
    count = db.query(User).count()
    user = User(email=email or f"user{count + 1}@example.com", plan_id=plan.id, **overrides)
    db.add(user)
    db.commit()
    return user


def make_advertiser(db, name="Acme", **fields):
    fields.setdefault("linkedin_company_id", "2027242")
    advertiser = Advertiser(name=name, total_ads_found=0, **fields)
    db.add(advertiser)
    db.commit()
    return advertiser


def make_link(db, user, advertiser, status=FollowStatus.ADDED):
    link = UserAdvertiser(
        user_id=user.id,
        advertiser_id=advertiser.id,
        status=status,
        first_tracked_at=datetime.utcnow(),
    )
    db.add(link)
    db.commit()
    return link


def make_run(
    db,
    advertiser,
    status=ScrapeRunStatus.RUNNING,
    job_type=JobType.INITIAL,
    apify_run_id="R1",
    apify_dataset_id=None,
    started_at=None,
    **fields,
):
    run = ScrapeRun(
        advertiser_id=advertiser.id,
        status=status,
        job_type=job_type,
        apify_run_id=apify_run_id,
        apify_dataset_id=apify_dataset_id,
        ads_found=fields.pop("ads_found", 0),
        started_at=started_at or datetime.utcnow(),
        **fields,
    )
    db.add(run)
    db.commit()
    return run


def raw_ad(ad_id, headline="Grow faster", **fields):
    """Minimal SINGLE_IMAGE dataset item"""
    item = {
        "adId": ad_id,
        "adLibraryUrl": f"https://www.linkedin.com/ad-library/detail/{ad_id}",
        "advertiserName": "Acme",
        "advertiserUrl": "https://www.linkedin.com/company/2027242",
        "advertiserLogo": "https://media.licdn.com/logo.png",
        "format": "SINGLE_IMAGE",
        "body": "Try Acme today",
        "headline": headline,
        "clickUrl": "https://acme.example/landing",
        "ctas": ["Learn more"],
        "availability": {"start": "2025-01-10T00:00:00Z", "end": "2025-02-10T00:00:00Z"},
        "impressions": "10k-20k",
        "impressionsPerCountry": [
            {"country": "Netherlands", "impressions": "90%"},
            {"country": "Belgium", "impressions": "10%"},
        ],
        "imageUrl": f"https://media.licdn.com/{ad_id}.jpg",
    }
    item.update(fields)
    return item
