"""
Format-specific media payloads stored in Ad.media_data

Each variant carries a literal ``kind`` so the JSON column decodes back into
the right model. Encoding/decoding happens only at the storage boundary.
"""
import logging
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)


class ImageMedia(BaseModel):
    kind: Literal["image"] = "image"
    image_url: Optional[str] = None


class VideoMedia(BaseModel):
    kind: Literal["video"] = "video"
    video_url: Optional[str] = None
    poster_url: Optional[str] = None


class CarouselSlide(BaseModel):
    image_url: str
    title: Optional[str] = None


class CarouselMedia(BaseModel):
    kind: Literal["carousel"] = "carousel"
    slides: List[CarouselSlide] = []


class DocumentMedia(BaseModel):
    kind: Literal["document"] = "document"
    document_url: Optional[str] = None
    image_urls: List[str] = []  # per-page preview images


class EventMedia(BaseModel):
    kind: Literal["event"] = "event"
    event_url: Optional[str] = None
    event_time_display: Optional[str] = None
    image_url: Optional[str] = None


class MessageMedia(BaseModel):
    kind: Literal["message"] = "message"
    sender_name: Optional[str] = None
    sender_image_url: Optional[str] = None
    banner_image_url: Optional[str] = None


class SpotlightMedia(BaseModel):
    kind: Literal["spotlight"] = "spotlight"
    profile_image_url: Optional[str] = None


class TextMedia(BaseModel):
    kind: Literal["text"] = "text"
    image_url: Optional[str] = None


class JobMedia(BaseModel):
    kind: Literal["job"] = "job"


class ArticleMedia(BaseModel):
    kind: Literal["article"] = "article"
    cover_image_url: Optional[str] = None
    article_url: Optional[str] = None


class FollowCompanyMedia(BaseModel):
    kind: Literal["follow_company"] = "follow_company"
    profile_image_url: Optional[str] = None


MediaPayload = Annotated[
    Union[
        ImageMedia,
        VideoMedia,
        CarouselMedia,
        DocumentMedia,
        EventMedia,
        MessageMedia,
        SpotlightMedia,
        TextMedia,
        JobMedia,
        ArticleMedia,
        FollowCompanyMedia,
    ],
    Field(discriminator="kind"),
]

_media_adapter = TypeAdapter(MediaPayload)


def encode_media(media) -> Optional[dict]:
    """Serialize a payload variant for the JSON column"""
    if media is None:
        return None
    return media.model_dump(mode="json")


def decode_media(data: Any):
    """Rebuild a payload variant from the JSON column; unknown shapes decode to None"""
    if not data:
        return None
    try:
        return _media_adapter.validate_python(data)
    except ValidationError as e:
        logger.warning(f"Undecodable media payload {data!r}: {e}")
        return None
