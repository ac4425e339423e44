"""
Database initialization script
Creates all tables and seeds the subscription plans
"""
import sys
import os
import logging

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import create_engine, text

from adlens.core.config import settings
from adlens.core.database import engine, SessionLocal, Base
from adlens.core.logging_conf import configure_logging
from adlens.models import Plan, ScrapeFrequency  # also registers every model

logger = logging.getLogger("init_db")

DEFAULT_PLANS = [
    {
        "name": "free_trial",
        "display_name": "Free Trial",
        "max_added_advertisers": 3,
        "max_followed_advertisers": 0,
        "refresh_frequency": ScrapeFrequency.MANUAL,
    },
    {
        "name": "starter",
        "display_name": "Starter",
        "max_added_advertisers": 10,
        "max_followed_advertisers": 5,
        "refresh_frequency": ScrapeFrequency.MONTHLY,
    },
    {
        "name": "pro",
        "display_name": "Pro",
        "max_added_advertisers": 50,
        "max_followed_advertisers": 25,
        "refresh_frequency": ScrapeFrequency.WEEKLY,
    },
    {
        "name": "agency",
        "display_name": "Agency",
        "max_added_advertisers": 999,
        "max_followed_advertisers": 100,
        "refresh_frequency": ScrapeFrequency.WEEKLY,
    },
    {
        "name": "admin",
        "display_name": "Admin",
        "max_added_advertisers": 999,
        "max_followed_advertisers": 999,
        "refresh_frequency": ScrapeFrequency.WEEKLY,
    },
]


def create_database():
    """Create the Postgres database if it doesn't exist"""
    if not settings.database_url.startswith("postgresql"):
        logger.info("Not a Postgres URL, skipping database creation")
        return

    # Connect to the maintenance database to create ours
    postgres_url = (
        f"postgresql://{settings.POSTGRES_USER}:{settings.POSTGRES_PWD}"
        f"@{settings.POSTGRES_HOST}:{settings.POSTGRES_PORT}/postgres"
    )
    temp_engine = create_engine(postgres_url, isolation_level="AUTOCOMMIT")

    with temp_engine.connect() as conn:
        exists = conn.execute(
            text("SELECT 1 FROM pg_database WHERE datname = :name"),
            {"name": settings.POSTGRES_DB},
        ).fetchone() is not None

        if not exists:
            conn.execute(text(f'CREATE DATABASE "{settings.POSTGRES_DB}"'))
            logger.info(f"Created database: {settings.POSTGRES_DB}")
        else:
            logger.info(f"Database already exists: {settings.POSTGRES_DB}")

    temp_engine.dispose()


def create_tables():
    """Create all tables"""
    Base.metadata.create_all(bind=engine)
    logger.info("All tables created")


def seed_plans():
    """Insert missing plans; existing rows are left as they are"""
    session = SessionLocal()
    try:
        for data in DEFAULT_PLANS:
            existing = session.query(Plan).filter(Plan.name == data["name"]).first()
            if existing:
                logger.info(f"Plan already exists: {data['name']}")
                continue
            session.add(Plan(**data))
            logger.info(f"Created plan: {data['name']}")
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def main():
    configure_logging()
    logger.info(f"{settings.APP_NAME} - Database Initialization")

    try:
        create_database()
        create_tables()
        seed_plans()
    except Exception as e:
        logger.error(f"Initialization failed: {e}")
        sys.exit(1)

    logger.info("Database initialization completed")


if __name__ == "__main__":
    main()
