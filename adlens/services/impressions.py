"""
Impression parsing and per-country estimates

The Ads Library reports impressions as a range string ("10k-20k") and a
percentage share per country ("90%"). We keep the string and derive a numeric
midpoint (15000) plus a per-country estimate ({"Netherlands": 13500}).
"""
import re
from typing import Any, Dict, Iterable, Optional

# Thin/hair/no-break/zero-width spaces the provider leaves in range strings
_INVISIBLE_SPACES = re.compile(r"[\u00a0\u2000-\u200b\u202f\u205f\u3000\ufeff]")
_DASHES = re.compile(r"[\u2010-\u2015\u2212]")
_RANGE = re.compile(r"(\d+)([km])?(?:-(\d+)([km])?)?")
_PERCENT = re.compile(r"(\d+(?:\.\d+)?)\s*%?")

_MULTIPLIERS = {None: 1, "k": 1_000, "m": 1_000_000}


def normalize_impressions(raw: Any) -> Optional[str]:
    """Strip invisible whitespace variants; empty becomes None"""
    if not isinstance(raw, str):
        return None
    normalized = _INVISIBLE_SPACES.sub("", raw).strip()
    return normalized or None


def parse_impressions(value: Any) -> int:
    """
    Midpoint of "N", "Nk", "Nm", "Nk-Mk" (case and whitespace insensitive).
    Anything else is 0.
    """
    if not isinstance(value, str):
        return 0
    compact = _INVISIBLE_SPACES.sub("", value)
    compact = _DASHES.sub("-", "".join(compact.split())).lower()

    match = _RANGE.fullmatch(compact)
    if not match:
        return 0

    low = int(match.group(1)) * _MULTIPLIERS[match.group(2)]
    if match.group(3) is None:
        return low
    high = int(match.group(3)) * _MULTIPLIERS[match.group(4)]
    # half-up
    return (low + high + 1) // 2


def parse_percent(value: Any) -> Optional[float]:
    """ "90%" -> 0.9; None when not a percentage in 0..100 """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        number = float(value)
    elif isinstance(value, str):
        match = _PERCENT.fullmatch(value.strip())
        if not match:
            return None
        number = float(match.group(1))
    else:
        return None

    if number < 0 or number > 100:
        return None
    return number / 100


def compute_country_estimates(
    total_midpoint: int,
    per_country: Optional[Iterable[Any]],
) -> Dict[str, int]:
    """Split the total midpoint by each country's share; unparseable rows are skipped"""
    estimates: Dict[str, int] = {}
    if not per_country or total_midpoint <= 0:
        return estimates

    for row in per_country:
        if not isinstance(row, dict):
            continue
        country = row.get("country")
        if not isinstance(country, str) or not country.strip():
            continue
        fraction = parse_percent(row.get("impressions"))
        if fraction is None:
            continue
        estimates[country.strip()] = int(total_midpoint * fraction + 0.5)

    return estimates
