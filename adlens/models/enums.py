"""
Enums for database models
"""
import enum


class ScrapeRunStatus(str, enum.Enum):
    """Lifecycle of one scrape attempt"""
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class JobType(str, enum.Enum):
    """
    Fixed when a run is created; decides how re-discovered ads are merged.
    - INITIAL: full creative upsert (add / manual scrape)
    - SCHEDULED: liveness fields only (recurring follow scrape)
    """
    INITIAL = "initial"
    SCHEDULED = "scheduled"


class ScrapeFrequency(str, enum.Enum):
    """Plan refresh frequency, also used for the shared advertiser schedule"""
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    MANUAL = "manual"   # no scheduled scraping


class FollowStatus(str, enum.Enum):
    """User-advertiser link status"""
    ADDED = "added"          # one-time add, no recurring scrape
    FOLLOWING = "following"  # contributes to the shared schedule
    ARCHIVED = "archived"    # unfollowed, ads stay visible


class AdFormat(str, enum.Enum):
    """Normalized ad formats from the LinkedIn Ads Library"""
    SINGLE_IMAGE = "SINGLE_IMAGE"
    VIDEO = "VIDEO"
    CAROUSEL = "CAROUSEL"
    DOCUMENT = "DOCUMENT"
    EVENT = "EVENT"
    MESSAGE = "MESSAGE"
    SPOTLIGHT = "SPOTLIGHT"
    TEXT = "TEXT"
    JOB = "JOB"
    ARTICLE = "ARTICLE"
    FOLLOW_COMPANY = "FOLLOW_COMPANY"


# Raw provider format values that map onto a normalized format
AD_FORMAT_ALIASES = {
    "JOBS_V2": AdFormat.JOB,
    "LINKEDIN_ARTICLE": AdFormat.ARTICLE,
    "SPONSORED_UPDATE_LINKEDIN_ARTICLE": AdFormat.ARTICLE,
}

# Days between scheduled scrapes
FREQUENCY_INTERVAL_DAYS = {
    ScrapeFrequency.WEEKLY: 7,
    ScrapeFrequency.MONTHLY: 30,
}

# Most demanding frequency wins when several followers share an advertiser
FREQUENCY_PRIORITY = {
    ScrapeFrequency.WEEKLY: 3,
    ScrapeFrequency.MONTHLY: 2,
    ScrapeFrequency.MANUAL: 1,
}
