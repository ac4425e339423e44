from datetime import datetime

import pytest

from adlens.schemas.media import (
    ArticleMedia,
    CarouselMedia,
    DocumentMedia,
    EventMedia,
    FollowCompanyMedia,
    ImageMedia,
    JobMedia,
    MessageMedia,
    SpotlightMedia,
    TextMedia,
    VideoMedia,
    decode_media,
)
from adlens.services.apify.transform import transform_ad

from conftest import raw_ad


def _item(fmt, **fields):
    item = {"adId": "1", "format": fmt}
    item.update(fields)
    return item


@pytest.mark.parametrize("item, media_url, variant", [
    (_item("SINGLE_IMAGE", imageUrl="img"), "img", ImageMedia),
    (_item("VIDEO", videoUrl="vid", videoThumbnailUrl="poster"), "vid", VideoMedia),
    (_item("CAROUSEL", slides=[{"imageUrl": "s1", "title": "One"}, {"imageUrl": "s2"}]), "s1", CarouselMedia),
    (_item("DOCUMENT", imageUrls=["p1", "p2"], documentUrl="doc"), "p1", DocumentMedia),
    (_item("DOCUMENT", documentUrl="doc"), "doc", DocumentMedia),
    (_item("EVENT", eventImageUrl="ev", imageUrl="img", eventUrl="e"), "ev", EventMedia),
    (_item("EVENT", imageUrl="img"), "img", EventMedia),
    (_item("MESSAGE", imageUrl="banner", senderName="Jo"), "banner", MessageMedia),
    (_item("SPOTLIGHT", profileImageUrl="prof", imageUrl="img"), "prof", SpotlightMedia),
    (_item("TEXT", imageUrl="img"), "img", TextMedia),
    (_item("JOB", imageUrl="img"), None, JobMedia),
    (_item("JOBS_V2"), None, JobMedia),
    (_item("ARTICLE", imageUrl="cover", clickUrl="https://blog"), "cover", ArticleMedia),
    (_item("LINKEDIN_ARTICLE", imageUrl="cover"), "cover", ArticleMedia),
    (_item("FOLLOW_COMPANY", imageUrl="img"), "img", FollowCompanyMedia),
])
def test_format_table(item, media_url, variant):
    ad = transform_ad(item, advertiser_id=7)

    assert ad is not None
    assert ad.media_url == media_url
    assert isinstance(decode_media(ad.media_data), variant)


def test_unknown_format_has_no_media():
    ad = transform_ad(_item("HOLOGRAM", imageUrl="img"), advertiser_id=7)

    assert ad.format == "HOLOGRAM"
    assert ad.media_url is None
    assert ad.media_data is None


def test_missing_format_has_no_media():
    ad = transform_ad({"adId": "1"}, advertiser_id=7)
    assert ad.format is None
    assert ad.media_url is None


def test_format_is_case_insensitive():
    ad = transform_ad(_item("single_image", imageUrl="img"), advertiser_id=7)
    assert ad.format == "SINGLE_IMAGE"
    assert ad.media_url == "img"


def test_payload_fields():
    video = decode_media(transform_ad(_item("VIDEO", videoUrl="v", videoThumbnailUrl="p"), 1).media_data)
    assert video.poster_url == "p"

    carousel = decode_media(transform_ad(
        _item("CAROUSEL", slides=[{"imageUrl": "s1", "title": "One"}, {"title": "no image"}]), 1
    ).media_data)
    assert [s.image_url for s in carousel.slides] == ["s1"]
    assert carousel.slides[0].title == "One"

    event = decode_media(transform_ad(
        _item("EVENT", eventUrl="https://ev", eventTimeDisplay="Tue, Mar 4", imageUrl="img"), 1
    ).media_data)
    assert event.event_url == "https://ev"
    assert event.event_time_display == "Tue, Mar 4"
    assert event.image_url == "img"

    article = decode_media(transform_ad(_item("ARTICLE", clickUrl="https://blog"), 1).media_data)
    assert article.article_url == "https://blog"


@pytest.mark.parametrize("item, expected", [
    ({"adId": "111"}, "111"),
    ({"id": "222"}, "222"),
    ({"id": 333}, "333"),
    ({"adLibraryUrl": "https://www.linkedin.com/ad-library/detail/444"}, "444"),
])
def test_external_id_resolution(item, expected):
    assert transform_ad(item, 1).external_id == expected


@pytest.mark.parametrize("item", [
    {},
    {"adId": ""},
    {"adLibraryUrl": "https://www.linkedin.com/ad-library/search"},
    None,
    "not an ad",
    [1, 2],
])
def test_unidentifiable_records_are_skipped(item):
    assert transform_ad(item, 1) is None


def test_malformed_fields_do_not_raise():
    ad = transform_ad({
        "adId": "1",
        "format": "CAROUSEL",
        "slides": "nope",
        "availability": {"start": "not a date", "end": None},
        "ctas": "Learn more",
        "impressions": 12,
        "impressionsPerCountry": {"country": "NL"},
        "targeting": [],
    }, 1)

    assert ad.media_url is None
    assert ad.start_date is None
    assert ad.call_to_action is None
    assert ad.impressions is None
    assert ad.impressions_estimate == 0
    assert ad.impressions_per_country is None
    assert ad.country_impressions_estimate == {}


def test_full_mapping():
    ad = transform_ad(raw_ad("9001"), advertiser_id=3)

    assert ad.external_id == "9001"
    assert ad.advertiser_id == 3
    assert ad.headline == "Grow faster"
    assert ad.body_text == "Try Acme today"
    assert ad.call_to_action == "Learn more"
    assert ad.destination_url == "https://acme.example/landing"
    assert ad.start_date == datetime(2025, 1, 10)
    assert ad.end_date == datetime(2025, 2, 10)
    assert ad.impressions == "10k-20k"
    assert ad.impressions_estimate == 15000
    assert ad.country_impressions_estimate == {"Netherlands": 13500, "Belgium": 1500}
    assert ad.advertiser_logo == "https://media.licdn.com/logo.png"


def test_transform_is_deterministic():
    item = raw_ad("9001")
    assert transform_ad(item, 3) == transform_ad(item, 3)
