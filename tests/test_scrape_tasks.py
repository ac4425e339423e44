from datetime import datetime

import pytest

from adlens.models import ScrapeFrequency, TaskLog, TaskStatus
from adlens.tasks import scheduler, scrape_tasks

from conftest import make_advertiser, make_run, raw_ad


@pytest.fixture(autouse=True)
def task_env(monkeypatch, session_factory, provider):
    monkeypatch.setattr(scrape_tasks, "SessionLocal", session_factory)
    monkeypatch.setattr(scrape_tasks, "get_apify_client", lambda: provider)


def test_sync_running_scrapes_logs_task(db, provider):
    make_run(db, make_advertiser(db), apify_dataset_id="D1")
    provider.items["D1"] = [raw_ad("1")]

    result = scrape_tasks.sync_running_scrapes(triggered_by="manual")

    assert result.synced == 1
    log = db.query(TaskLog).one()
    assert log.task_name == "sync_scrapes"
    assert log.status == TaskStatus.COMPLETED
    assert log.triggered_by == "manual"
    assert log.message == "Synced 1 runs, 0 failed"
    assert (log.items_processed, log.items_success, log.items_failed) == (1, 1, 0)


def test_scrape_due_advertisers_logs_budget_reason(db, provider, monkeypatch):
    monkeypatch.setattr("adlens.services.budget.settings.MONTHLY_SPEND_LIMIT_USD", 0.0)
    make_advertiser(db, scrape_frequency=ScrapeFrequency.WEEKLY, next_scrape_at=datetime(2020, 1, 1))

    result = scrape_tasks.scrape_due_advertisers()

    assert (result.due, result.skipped) == (1, 1)
    assert provider.started == []
    log = db.query(TaskLog).one()
    assert log.status == TaskStatus.COMPLETED
    assert log.message == "1 due, 0 started, 1 skipped (monthly_budget_exceeded)"
    assert log.output_data == {"reason": "monthly_budget_exceeded"}


def test_task_failure_is_logged_and_raised(db, monkeypatch):
    def explode(db, provider):
        raise RuntimeError("database went away")

    monkeypatch.setattr(scrape_tasks, "start_due_advertisers", explode)

    with pytest.raises(RuntimeError):
        scrape_tasks.scrape_due_advertisers()

    log = db.query(TaskLog).one()
    assert log.status == TaskStatus.FAILED
    assert log.error_message == "database went away"


def test_scheduler_jobs_do_not_raise(monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("provider down")

    monkeypatch.setattr(scrape_tasks, "sync_running_scrapes", explode)
    monkeypatch.setattr(scrape_tasks, "scrape_due_advertisers", explode)

    scheduler.sync_scrapes_job()
    scheduler.scrape_due_advertisers_job()


def test_scheduler_registers_jobs():
    scheduler.start_scheduler()
    try:
        job_ids = {job.id for job in scheduler.scheduler.get_jobs()}
        assert job_ids == {"sync_scrapes", "scrape_due_advertisers"}
    finally:
        scheduler.stop_scheduler()
    assert scheduler.scheduler is None


def test_task_log_starts_running(db):
    task = scrape_tasks.log_task_start("sync_scrapes", "sync", triggered_by="cron")

    log = db.get(TaskLog, task.id)
    assert log.status == TaskStatus.RUNNING
    assert log.completed_at is None
    assert {status.value for status in TaskStatus} == {"running", "completed", "failed"}
