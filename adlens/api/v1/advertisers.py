"""
Advertiser list endpoints: add, follow, unfollow, re-follow, remove
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from adlens.core.deps import get_db, get_provider, get_current_user
from adlens.models.user import User
from adlens.schemas.advertisers import (
    AddAdvertiserRequest,
    AddAdvertiserResponse,
    AdvertiserSummary,
    UserAdvertiserResponse,
)
from adlens.schemas.common import DataResponse, ResponseBase
from adlens.services.advertiser_service import AdvertiserService

router = APIRouter(prefix="/advertisers", tags=["Advertisers"])


@router.post("/add", response_model=DataResponse[AddAdvertiserResponse])
def add_advertiser(
    request: AddAdvertiserRequest,
    db: Session = Depends(get_db),
    provider=Depends(get_provider),
    current_user: User = Depends(get_current_user),
):
    """Add an advertiser; new advertisers get a one-time scrape, known ones are only linked"""
    advertiser, link, run = AdvertiserService(db, provider).add_advertiser(
        current_user.id, request.linkedin_url
    )
    return DataResponse(
        data=AddAdvertiserResponse(
            advertiser=AdvertiserSummary.model_validate(advertiser),
            user_advertiser=UserAdvertiserResponse.model_validate(link),
            scrape_status="started" if run else "skipped",
            scrape_run_id=run.id if run else None,
        )
    )


@router.post("/{link_id}/follow", response_model=DataResponse[UserAdvertiserResponse])
def follow_advertiser(
    link_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    link = AdvertiserService(db).follow(current_user.id, link_id)
    return DataResponse(
        message=f"Now following {link.advertiser.name}.",
        data=UserAdvertiserResponse.model_validate(link),
    )


@router.post("/{link_id}/unfollow", response_model=DataResponse[UserAdvertiserResponse])
def unfollow_advertiser(
    link_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    link = AdvertiserService(db).unfollow(current_user.id, link_id)
    return DataResponse(
        message=f"Stopped following {link.advertiser.name}. Its ads stay in your list.",
        data=UserAdvertiserResponse.model_validate(link),
    )


@router.post("/{link_id}/refollow", response_model=DataResponse[UserAdvertiserResponse])
def refollow_advertiser(
    link_id: int,
    db: Session = Depends(get_db),
    provider=Depends(get_provider),
    current_user: User = Depends(get_current_user),
):
    """Re-follow an archived advertiser; stale data triggers a fresh scrape"""
    link, run = AdvertiserService(db, provider).refollow(current_user.id, link_id)
    message = f"Now following {link.advertiser.name} again."
    if run:
        message += " Fetching the latest ads."
    return DataResponse(message=message, data=UserAdvertiserResponse.model_validate(link))


@router.delete("/{link_id}", response_model=ResponseBase)
def remove_advertiser(
    link_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    AdvertiserService(db).remove(current_user.id, link_id)
    return ResponseBase(message="Advertiser removed from your list.")
