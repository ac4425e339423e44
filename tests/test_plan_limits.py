from datetime import datetime, timedelta

from adlens.models import Advertiser, FollowStatus, ScrapeFrequency
from adlens.services.plan_limits import (
    best_frequency,
    can_add_advertiser,
    can_follow_advertiser,
    get_user_plan_limits,
    recalculate_advertiser_schedule,
)

from conftest import make_advertiser, make_link, make_plan, make_user

NOW = datetime(2025, 3, 1, 8, 0)


def _follower(db, advertiser, frequency, plan_name):
    plan = make_plan(db, name=plan_name, frequency=frequency)
    user = make_user(db, plan)
    make_link(db, user, advertiser, status=FollowStatus.FOLLOWING)
    return user


def test_manual_and_monthly_followers_schedule_monthly(db):
    advertiser = make_advertiser(db)
    _follower(db, advertiser, ScrapeFrequency.MANUAL, "free_trial")
    _follower(db, advertiser, ScrapeFrequency.MONTHLY, "starter")

    best = recalculate_advertiser_schedule(db, advertiser.id, now=NOW)

    assert best == ScrapeFrequency.MONTHLY
    assert advertiser.scrape_frequency == ScrapeFrequency.MONTHLY
    assert advertiser.next_scrape_at == NOW + timedelta(days=30)


def test_weekly_wins_over_monthly(db):
    advertiser = make_advertiser(db)
    _follower(db, advertiser, ScrapeFrequency.WEEKLY, "pro")
    _follower(db, advertiser, ScrapeFrequency.MONTHLY, "starter")

    recalculate_advertiser_schedule(db, advertiser.id, now=NOW)

    assert advertiser.scrape_frequency == ScrapeFrequency.WEEKLY
    assert advertiser.next_scrape_at == NOW + timedelta(days=7)


def test_no_followers_clears_schedule(db):
    advertiser = make_advertiser(
        db,
        scrape_frequency=ScrapeFrequency.WEEKLY,
        next_scrape_at=NOW,
    )

    assert recalculate_advertiser_schedule(db, advertiser.id, now=NOW) is None
    assert advertiser.scrape_frequency is None
    assert advertiser.next_scrape_at is None


def test_only_manual_followers_clear_schedule(db):
    advertiser = make_advertiser(db, scrape_frequency=ScrapeFrequency.MONTHLY, next_scrape_at=NOW)
    _follower(db, advertiser, ScrapeFrequency.MANUAL, "free_trial")

    recalculate_advertiser_schedule(db, advertiser.id, now=NOW)

    assert advertiser.scrape_frequency is None
    assert advertiser.next_scrape_at is None


def test_added_and_archived_links_do_not_count(db):
    advertiser = make_advertiser(db)
    plan = make_plan(db, name="pro", frequency=ScrapeFrequency.WEEKLY)
    make_link(db, make_user(db, plan), advertiser, status=FollowStatus.ADDED)
    make_link(db, make_user(db, plan), advertiser, status=FollowStatus.ARCHIVED)

    recalculate_advertiser_schedule(db, advertiser.id, now=NOW)

    assert db.get(Advertiser, advertiser.id).scrape_frequency is None


def test_user_override_beats_plan_frequency(db):
    advertiser = make_advertiser(db)
    plan = make_plan(db, name="starter", frequency=ScrapeFrequency.MONTHLY)
    user = make_user(db, plan, refresh_frequency=ScrapeFrequency.WEEKLY)
    make_link(db, user, advertiser, status=FollowStatus.FOLLOWING)

    recalculate_advertiser_schedule(db, advertiser.id, now=NOW)

    assert advertiser.scrape_frequency == ScrapeFrequency.WEEKLY


def test_best_frequency():
    assert best_frequency([]) is None
    assert best_frequency([ScrapeFrequency.MANUAL, None]) is None
    assert best_frequency(["monthly", "weekly"]) == ScrapeFrequency.WEEKLY


def test_plan_limits_with_overrides(db):
    plan = make_plan(db, name="starter", frequency=ScrapeFrequency.MONTHLY, max_added=10, max_followed=5)
    user = make_user(db, plan, max_followed_advertisers=8)

    limits = get_user_plan_limits(db, user.id)

    assert limits.max_added_advertisers == 10
    assert limits.max_followed_advertisers == 8
    assert limits.refresh_frequency == ScrapeFrequency.MONTHLY
    assert get_user_plan_limits(db, 9999) is None


def test_zero_override_is_respected(db):
    plan = make_plan(db, name="pro", max_added=50, max_followed=25)
    user = make_user(db, plan, max_followed_advertisers=0)

    assert can_follow_advertiser(db, user.id).allowed is False


def test_add_limit_counts_added_and_following(db):
    plan = make_plan(db, name="free_trial", frequency=ScrapeFrequency.MANUAL, max_added=2, max_followed=0)
    user = make_user(db, plan)
    make_link(db, user, make_advertiser(db, name="A"), status=FollowStatus.ADDED)

    check = can_add_advertiser(db, user.id)
    assert (check.allowed, check.current, check.max) == (True, 1, 2)

    make_link(db, user, make_advertiser(db, name="B"), status=FollowStatus.FOLLOWING)
    make_link(db, user, make_advertiser(db, name="C"), status=FollowStatus.ARCHIVED)

    check = can_add_advertiser(db, user.id)
    assert (check.allowed, check.current, check.max) == (False, 2, 2)


def test_follow_limit_counts_following_only(db):
    plan = make_plan(db, name="starter", frequency=ScrapeFrequency.MONTHLY, max_added=10, max_followed=1)
    user = make_user(db, plan)
    make_link(db, user, make_advertiser(db, name="A"), status=FollowStatus.ADDED)

    assert can_follow_advertiser(db, user.id).allowed is True

    make_link(db, user, make_advertiser(db, name="B"), status=FollowStatus.FOLLOWING)
    check = can_follow_advertiser(db, user.id)
    assert (check.allowed, check.current) == (False, 1)


def test_unknown_user_is_not_allowed(db):
    check = can_add_advertiser(db, 404)
    assert (check.allowed, check.current, check.max) == (False, 0, 0)
