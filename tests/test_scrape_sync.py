from datetime import datetime, timedelta

import pytest

from adlens.core.exceptions import ProviderError
from adlens.models import (
    Ad,
    Advertiser,
    JobType,
    ScrapeFrequency,
    ScrapeRun,
    ScrapeRunStatus,
)
from adlens.services.scrape_runs import start_scrape_run
from adlens.services.scrape_sync import ScrapeSyncService

from conftest import make_advertiser, make_run, raw_ad

NOW = datetime(2025, 3, 1, 12, 0)


def test_run_lifecycle_end_to_end(db, provider):
    advertiser = make_advertiser(db)
    run = start_scrape_run(db, provider, advertiser, job_type=JobType.INITIAL, now=NOW)
    assert run.apify_run_id == "R1"
    assert run.apify_dataset_id is None
    assert run.status == ScrapeRunStatus.RUNNING

    service = ScrapeSyncService(db, provider, cost_per_ad=0.004)

    # Dataset not allocated yet
    first = service.sync(run.id, now=NOW)
    assert first.status == ScrapeRunStatus.RUNNING
    assert first.ads_found == 0
    assert provider.dataset_calls == []

    # Items are streaming in
    provider.dataset_id = "D1"
    provider.items["D1"] = [raw_ad("1"), raw_ad("2"), raw_ad("3")]
    second = service.sync(run.id, now=NOW + timedelta(minutes=1))
    assert second.status == ScrapeRunStatus.RUNNING
    assert second.ads_found == 3
    assert second.cost_usd is None
    assert db.query(Ad).count() == 3

    db.expire_all()
    in_flight = db.get(ScrapeRun, run.id)
    assert in_flight.ads_found == 3
    assert in_flight.apify_dataset_id == "D1"
    assert in_flight.completed_at is None
    assert in_flight.ads_new is None
    assert in_flight.cost_usd is None

    # Provider finished
    provider.status = "SUCCEEDED"
    finished_at = NOW + timedelta(minutes=2)
    third = service.sync(run.id, now=finished_at)
    assert third.status == ScrapeRunStatus.COMPLETED
    assert third.ads_found == 3
    assert third.ads_new == 0
    assert third.ads_updated == 3
    assert third.cost_usd == pytest.approx(0.012)

    db.expire_all()
    done = db.get(ScrapeRun, run.id)
    assert done.status == ScrapeRunStatus.COMPLETED
    assert done.completed_at == finished_at
    assert (done.ads_new, done.ads_updated) == (0, 3)
    assert done.cost_usd == pytest.approx(0.012)
    assert done.error_message is None


def test_sync_without_provider_run_id_returns_none(db, provider):
    advertiser = make_advertiser(db)
    run = make_run(db, advertiser, apify_run_id=None)

    assert ScrapeSyncService(db, provider).sync(run.id) is None
    assert ScrapeSyncService(db, provider).sync(12345) is None
    assert provider.status_calls == []


def test_failed_provider_run_is_recorded_not_raised(db, provider):
    advertiser = make_advertiser(db)
    run = make_run(db, advertiser, apify_dataset_id="D1")
    provider.status = "ABORTED"
    provider.items["D1"] = [raw_ad("1")]

    result = ScrapeSyncService(db, provider, cost_per_ad=0.004).sync(run.id, now=NOW)

    assert result.status == ScrapeRunStatus.FAILED
    assert result.run_status == "ABORTED"
    db.expire_all()
    failed = db.get(ScrapeRun, run.id)
    assert failed.status == ScrapeRunStatus.FAILED
    assert failed.error_message == "Apify run ended with status: ABORTED"
    assert failed.completed_at == NOW
    assert (failed.ads_new, failed.ads_updated) == (1, 0)
    assert failed.cost_usd == pytest.approx(0.004)


def test_known_dataset_id_wins_over_status(db, provider):
    advertiser = make_advertiser(db)
    run = make_run(db, advertiser, apify_dataset_id="D-known")
    provider.dataset_id = "D-other"

    ScrapeSyncService(db, provider).sync(run.id, now=NOW)

    assert provider.dataset_calls == ["D-known"]


def test_resync_of_terminal_run_is_stable(db, provider):
    advertiser = make_advertiser(db)
    run = make_run(db, advertiser, apify_dataset_id="D1")
    provider.status = "SUCCEEDED"
    provider.items["D1"] = [raw_ad("1"), raw_ad("2")]
    service = ScrapeSyncService(db, provider, cost_per_ad=0.004)

    first = service.sync(run.id, now=NOW)
    second = service.sync(run.id, now=NOW)

    assert first.status == second.status == ScrapeRunStatus.COMPLETED
    assert first.cost_usd == second.cost_usd
    assert db.query(Ad).count() == 2


def test_scheduled_success_advances_schedule(db, provider):
    advertiser = make_advertiser(
        db,
        scrape_frequency=ScrapeFrequency.WEEKLY,
        next_scrape_at=NOW - timedelta(hours=1),
    )
    run = make_run(db, advertiser, job_type=JobType.SCHEDULED, apify_dataset_id="D1")
    provider.status = "SUCCEEDED"
    provider.items["D1"] = [raw_ad("1")]

    ScrapeSyncService(db, provider).sync(run.id, now=NOW)

    db.expire_all()
    advertiser = db.get(Advertiser, advertiser.id)
    assert advertiser.next_scrape_at == NOW + timedelta(days=7)
    assert advertiser.last_scraped_at == NOW


def test_scheduled_success_without_frequency_leaves_schedule(db, provider):
    advertiser = make_advertiser(db)
    run = make_run(db, advertiser, job_type=JobType.SCHEDULED, apify_dataset_id="D1")
    provider.status = "SUCCEEDED"

    ScrapeSyncService(db, provider).sync(run.id, now=NOW)

    db.expire_all()
    advertiser = db.get(Advertiser, advertiser.id)
    assert advertiser.scrape_frequency is None
    assert advertiser.next_scrape_at is None


def test_failed_scheduled_run_does_not_advance_schedule(db, provider):
    due_at = NOW - timedelta(hours=1)
    advertiser = make_advertiser(db, scrape_frequency=ScrapeFrequency.MONTHLY, next_scrape_at=due_at)
    run = make_run(db, advertiser, job_type=JobType.SCHEDULED, apify_dataset_id="D1")
    provider.status = "TIMED-OUT"

    ScrapeSyncService(db, provider).sync(run.id, now=NOW)

    db.expire_all()
    assert db.get(Advertiser, advertiser.id).next_scrape_at == due_at


def test_provider_error_propagates_from_sync(db, provider):
    advertiser = make_advertiser(db)
    run = make_run(db, advertiser)
    provider.fail_status = True

    with pytest.raises(ProviderError):
        ScrapeSyncService(db, provider).sync(run.id)

    db.expire_all()
    assert db.get(ScrapeRun, run.id).status == ScrapeRunStatus.RUNNING


def test_sync_all_running_isolates_failures(db, provider):
    advertiser = make_advertiser(db)
    good = make_run(db, advertiser, apify_run_id="good", apify_dataset_id="D1", started_at=NOW)
    bad = make_run(db, advertiser, apify_run_id="bad", started_at=NOW)
    stale = make_run(db, advertiser, apify_run_id="stale", started_at=NOW - timedelta(hours=30))
    make_run(
        db, advertiser,
        status=ScrapeRunStatus.COMPLETED,
        apify_run_id="done",
        started_at=NOW,
        completed_at=NOW,
    )
    provider.items["D1"] = [raw_ad("1")]

    original = provider.get_run_status

    def flaky_status(run_id):
        if run_id == "bad":
            raise ProviderError("Apify GET /actor-runs/bad failed (500)", status_code=500)
        return original(run_id)

    provider.get_run_status = flaky_status

    result = ScrapeSyncService(db, provider).sync_all_running(max_age_hours=24, now=NOW)

    assert result.synced == 1
    assert result.failed == 1
    by_id = {item.id: item for item in result.results}
    assert by_id[good.id].ads_found == 1
    assert "500" in by_id[bad.id].error
    assert stale.id not in by_id


def test_poll_until_terminal(db, provider):
    advertiser = make_advertiser(db)
    run = make_run(db, advertiser, apify_dataset_id="D1")
    provider.items["D1"] = [raw_ad("1")]
    sleeps = []

    def finish_after_two(seconds):
        sleeps.append(seconds)
        if len(sleeps) == 2:
            provider.status = "SUCCEEDED"

    result = ScrapeSyncService(db, provider).poll_until_terminal(
        run.id, interval=5, max_attempts=10, sleep=finish_after_two
    )

    assert result.status == ScrapeRunStatus.COMPLETED
    assert sleeps == [5, 5]


def test_poll_gives_up_after_max_attempts(db, provider):
    advertiser = make_advertiser(db)
    run = make_run(db, advertiser)
    sleeps = []

    result = ScrapeSyncService(db, provider).poll_until_terminal(
        run.id, interval=1, max_attempts=3, sleep=sleeps.append
    )

    assert result.status == ScrapeRunStatus.RUNNING
    assert len(provider.status_calls) == 3
    assert sleeps == [1, 1]


def test_later_resync_keeps_completion_and_schedule(db, provider):
    advertiser = make_advertiser(db, scrape_frequency=ScrapeFrequency.WEEKLY, next_scrape_at=NOW)
    run = make_run(db, advertiser, job_type=JobType.SCHEDULED, apify_dataset_id="D1")
    provider.status = "SUCCEEDED"
    provider.items["D1"] = [raw_ad("1")]
    service = ScrapeSyncService(db, provider, cost_per_ad=0.004)

    service.sync(run.id, now=NOW)
    again = service.sync(run.id, now=NOW + timedelta(days=3))

    assert again.status == ScrapeRunStatus.COMPLETED
    db.expire_all()
    assert db.get(ScrapeRun, run.id).completed_at == NOW
    assert db.get(Advertiser, advertiser.id).next_scrape_at == NOW + timedelta(days=7)
