from adlens.services.apify.client import (
    ApifyClient,
    get_apify_client,
    is_terminal_status,
    TERMINAL_STATUSES,
)
from adlens.services.apify.transform import transform_ad

__all__ = [
    "ApifyClient",
    "get_apify_client",
    "is_terminal_status",
    "TERMINAL_STATUSES",
    "transform_ad",
]
