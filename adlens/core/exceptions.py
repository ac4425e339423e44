"""
Domain exceptions raised by the scrape core and mapped to HTTP responses by the API
"""
from typing import Any, Dict, Optional


class AdLensError(Exception):
    """Base error with a machine-readable code"""

    code = "ERROR"

    def __init__(self, message: str, code: Optional[str] = None, **detail: Any):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.detail: Dict[str, Any] = detail


class ProviderError(AdLensError):
    """HTTP/transport failure or malformed response from the scrape provider"""

    code = "PROVIDER_ERROR"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, status_code=status_code)
        self.status_code = status_code


class BudgetExceeded(AdLensError):
    """Monthly scrape spend has reached the configured limit"""

    code = "BUDGET_EXCEEDED"

    def __init__(self, budget):
        super().__init__(
            f"Monthly spend limit exceeded. Current spend: ${budget.current_spend:.2f}. "
            f"Limit: ${budget.limit:.2f}.",
            current_spend=round(budget.current_spend, 2),
            limit=budget.limit,
        )
        self.budget = budget


class ScheduleConflict(AdLensError):
    """Follow/add transition rejected before any state was mutated"""

    code = "SCHEDULE_CONFLICT"

    LIMIT_REACHED = "LIMIT_REACHED"
    MANUAL_PLAN = "MANUAL_PLAN"
    ALREADY_FOLLOWING = "ALREADY_FOLLOWING"
    ARCHIVED = "ARCHIVED"
    NOT_FOLLOWING = "NOT_FOLLOWING"
    ALREADY_ARCHIVED = "ALREADY_ARCHIVED"
    NOT_ARCHIVED = "NOT_ARCHIVED"
    ALREADY_ADDED = "ALREADY_ADDED"
    NO_IDENTIFIER = "NO_IDENTIFIER"


class InvalidAdvertiserUrl(AdLensError):
    code = "INVALID_URL"


class NotFoundError(AdLensError):
    code = "NOT_FOUND"
