# Core module - config, database, exceptions
from adlens.core.config import settings
from adlens.core.database import Base, SessionLocal
from adlens.core.exceptions import (
    AdLensError,
    ProviderError,
    BudgetExceeded,
    ScheduleConflict,
    InvalidAdvertiserUrl,
    NotFoundError,
)
