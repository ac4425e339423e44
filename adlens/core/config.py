"""
AdLens Configuration
Load settings from environment variables
"""
from functools import lru_cache
from typing import Optional, List
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # ============================================
    # Application Settings
    # ============================================
    APP_NAME: str = "AdLens"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"  # development, staging, production
    LOG_LEVEL: str = "INFO"

    # ============================================
    # Database Settings
    # ============================================
    POSTGRES_USER: str = "postgres"
    POSTGRES_PWD: str = ""
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "adlens"
    DATABASE_URL: Optional[str] = None

    @property
    def database_url(self) -> str:
        """Get database URL, construct from parts if not provided"""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PWD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # ============================================
    # CORS Settings
    # ============================================
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # ============================================
    # Scrape Provider (Apify) Settings
    # ============================================
    APIFY_API_TOKEN: Optional[str] = None
    APIFY_ACTOR_ID: str = "silva95gustavo~linkedin-ad-library-scraper"
    APIFY_BASE_URL: str = "https://api.apify.com/v2"
    APIFY_TIMEOUT_SECONDS: float = 30.0

    # ============================================
    # Cost & Budget Settings
    # ============================================
    SCRAPE_COST_PER_AD_USD: float = 0.004  # measured from real runs
    MONTHLY_SPEND_LIMIT_USD: float = 50.0

    # ============================================
    # Sync Settings
    # ============================================
    SYNC_RUN_MAX_AGE_HOURS: int = 24  # older RUNNING rows are left for manual review
    POLL_INTERVAL_SECONDS: float = 10.0
    POLL_MAX_ATTEMPTS: int = 120  # 20 minutes at the default interval
    REFOLLOW_STALE_DAYS: int = 7

    # ============================================
    # Cron / Scheduler Settings
    # ============================================
    CRON_SECRET: Optional[str] = None
    SCHEDULER_ENABLED: bool = True
    SYNC_SCRAPES_INTERVAL_MINUTES: int = 1
    SCRAPE_DUE_HOUR_UTC: int = 2

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields from .env


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Global settings instance
settings = get_settings()
