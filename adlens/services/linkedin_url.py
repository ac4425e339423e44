"""
LinkedIn company URL helpers for the add-advertiser flow and id backfill
"""
import re
from typing import Any, Optional

_COMPANY_PAGE = re.compile(r"^https?://(?:www\.)?linkedin\.com/company/([^/?#]+)", re.I)
_COMPANY_PAGE_RELAXED = re.compile(r"linkedin\.com/company/([^/?#]+)", re.I)
_NUMERIC_COMPANY = re.compile(r"linkedin\.com/company/(\d+)", re.I)
_AD_DETAIL = re.compile(r"/ad-library/detail/(\d+)", re.I)


def normalize_company_url(value: str) -> Optional[str]:
    """Normalize to https://www.linkedin.com/company/{slug-or-id}/ or None if not a company page"""
    trimmed = (value or "").strip()
    if not trimmed:
        return None

    match = _COMPANY_PAGE.match(trimmed)
    if not match:
        # bare "linkedin.com/company/x" is fine, other full URLs are not
        if trimmed.lower().startswith("http"):
            return None
        match = _COMPANY_PAGE_RELAXED.search(trimmed)
    if not match:
        return None

    return f"https://www.linkedin.com/company/{match.group(1)}/"


def company_path_segment(normalized_url: str) -> Optional[str]:
    match = _COMPANY_PAGE_RELAXED.search(normalized_url or "")
    return match.group(1) if match else None


def extract_company_id(advertiser_url: Any) -> Optional[str]:
    """Numeric company id from an advertiser URL such as https://www.linkedin.com/company/2027242"""
    if not isinstance(advertiser_url, str):
        return None
    match = _NUMERIC_COMPANY.search(advertiser_url)
    return match.group(1) if match else None


def extract_ad_id(ad_library_url: Any) -> Optional[str]:
    if not isinstance(ad_library_url, str):
        return None
    match = _AD_DETAIL.search(ad_library_url)
    return match.group(1) if match else None
