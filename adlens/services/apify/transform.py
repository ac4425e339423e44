"""
Map raw LinkedIn Ad Library scraper items to TransformedAd

This is the only module that knows the actor's output field names.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from adlens.models.enums import AdFormat, AD_FORMAT_ALIASES
from adlens.schemas.media import (
    ImageMedia,
    VideoMedia,
    CarouselSlide,
    CarouselMedia,
    DocumentMedia,
    EventMedia,
    MessageMedia,
    SpotlightMedia,
    TextMedia,
    JobMedia,
    ArticleMedia,
    FollowCompanyMedia,
    encode_media,
)
from adlens.schemas.scrape import TransformedAd
from adlens.services.impressions import (
    normalize_impressions,
    parse_impressions,
    compute_country_estimates,
)
from adlens.services.linkedin_url import extract_ad_id

logger = logging.getLogger(__name__)


def _str(value: Any) -> Optional[str]:
    """Non-empty string or None"""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _parse_date(value: Any) -> Optional[datetime]:
    text = _str(value)
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    # stored as naive UTC
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def resolve_external_id(raw: Dict[str, Any]) -> Optional[str]:
    return _str(raw.get("adId")) or _str(raw.get("id")) or extract_ad_id(raw.get("adLibraryUrl"))


def resolve_format(raw_format: Any) -> Optional[AdFormat]:
    tag = (_str(raw_format) or "").upper()
    if not tag:
        return None
    if tag in AD_FORMAT_ALIASES:
        return AD_FORMAT_ALIASES[tag]
    try:
        return AdFormat(tag)
    except ValueError:
        return None


def resolve_media(raw: Dict[str, Any], ad_format: Optional[AdFormat]) -> Tuple[Optional[str], Any]:
    """(media_url, payload variant) for a format; unknown formats get (None, None)"""
    image_url = _str(raw.get("imageUrl"))
    profile_image_url = _str(raw.get("profileImageUrl"))

    if ad_format == AdFormat.SINGLE_IMAGE:
        return image_url, ImageMedia(image_url=image_url)

    if ad_format == AdFormat.VIDEO:
        video_url = _str(raw.get("videoUrl"))
        return video_url, VideoMedia(
            video_url=video_url,
            poster_url=_str(raw.get("videoThumbnailUrl")),
        )

    if ad_format == AdFormat.CAROUSEL:
        slides = []
        for slide in _list(raw.get("slides")):
            slide_image = _str(_dict(slide).get("imageUrl"))
            if slide_image:
                slides.append(CarouselSlide(image_url=slide_image, title=_str(slide.get("title"))))
        return (slides[0].image_url if slides else None), CarouselMedia(slides=slides)

    if ad_format == AdFormat.DOCUMENT:
        image_urls = [u for u in (_str(i) for i in _list(raw.get("imageUrls"))) if u]
        document_url = _str(raw.get("documentUrl"))
        media_url = image_urls[0] if image_urls else document_url
        return media_url, DocumentMedia(document_url=document_url, image_urls=image_urls)

    if ad_format == AdFormat.EVENT:
        event_image = _str(raw.get("eventImageUrl")) or image_url
        return event_image, EventMedia(
            event_url=_str(raw.get("eventUrl")),
            event_time_display=_str(raw.get("eventTimeDisplay")),
            image_url=event_image,
        )

    if ad_format == AdFormat.MESSAGE:
        return image_url, MessageMedia(
            sender_name=_str(raw.get("senderName")),
            sender_image_url=_str(raw.get("senderImageUrl")),
            banner_image_url=image_url,
        )

    if ad_format == AdFormat.SPOTLIGHT:
        profile = profile_image_url or image_url
        return profile, SpotlightMedia(profile_image_url=profile)

    if ad_format == AdFormat.TEXT:
        return image_url, TextMedia(image_url=image_url)

    if ad_format == AdFormat.JOB:
        return None, JobMedia()

    if ad_format == AdFormat.ARTICLE:
        return image_url, ArticleMedia(
            cover_image_url=image_url,
            article_url=_str(raw.get("clickUrl")),
        )

    if ad_format == AdFormat.FOLLOW_COMPANY:
        profile = profile_image_url or image_url
        return profile, FollowCompanyMedia(profile_image_url=profile)

    return None, None


def transform_ad(raw: Any, advertiser_id: int) -> Optional[TransformedAd]:
    """
    Transform one raw dataset item.

    Returns None when the item has no usable external id; never raises on
    malformed input.
    """
    if not isinstance(raw, dict):
        logger.warning(f"Skipping non-object dataset item: {type(raw).__name__}")
        return None

    external_id = resolve_external_id(raw)
    if not external_id:
        logger.warning(f"Skipping dataset item without an ad id (advertiser {advertiser_id})")
        return None

    ad_format = resolve_format(raw.get("format"))
    media_url, media = resolve_media(raw, ad_format)

    impressions = normalize_impressions(raw.get("impressions"))
    midpoint = parse_impressions(impressions)
    per_country = [row for row in _list(raw.get("impressionsPerCountry")) if isinstance(row, dict)]

    availability = _dict(raw.get("availability"))
    targeting = _dict(raw.get("targeting"))
    ctas = _list(raw.get("ctas"))

    return TransformedAd(
        external_id=external_id,
        advertiser_id=advertiser_id,
        format=ad_format.value if ad_format else _str(raw.get("format")),
        ad_library_url=_str(raw.get("adLibraryUrl")),
        body_text=_str(raw.get("body")),
        headline=_str(raw.get("headline")),
        call_to_action=_str(ctas[0]) if ctas else None,
        destination_url=_str(raw.get("clickUrl")),
        media_url=media_url,
        media_data=encode_media(media),
        paid_by=_str(raw.get("paidBy")),
        target_language=_str(targeting.get("language")),
        target_location=_str(targeting.get("location")),
        start_date=_parse_date(availability.get("start")),
        end_date=_parse_date(availability.get("end")),
        impressions=impressions,
        impressions_estimate=midpoint,
        impressions_per_country=per_country or None,
        country_impressions_estimate=compute_country_estimates(midpoint, per_country),
        advertiser_name=_str(raw.get("advertiserName")),
        advertiser_url=_str(raw.get("advertiserUrl")),
        advertiser_logo=_str(raw.get("advertiserLogo")),
    )
