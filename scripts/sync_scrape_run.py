"""
Sync one scrape run from the command line

Usage:
    python scripts/sync_scrape_run.py 42
    python scripts/sync_scrape_run.py --apify-run-id abc123
    python scripts/sync_scrape_run.py 42 --poll --interval 10 --max-attempts 60
"""
import sys
import os
import argparse
import logging

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from adlens.core.database import SessionLocal
from adlens.core.exceptions import ProviderError
from adlens.core.logging_conf import configure_logging
from adlens.models import ScrapeRun
from adlens.services.apify.client import get_apify_client
from adlens.services.scrape_sync import ScrapeSyncService

logger = logging.getLogger("sync_scrape_run")


def parse_args():
    parser = argparse.ArgumentParser(description="Sync a scrape run with the provider")
    parser.add_argument("scrape_run_id", nargs="?", type=int, help="Internal scrape run id")
    parser.add_argument("--apify-run-id", help="Provider run id instead of the internal id")
    parser.add_argument("--poll", action="store_true", help="Keep syncing until the run is finished")
    parser.add_argument("--interval", type=float, default=None, help="Seconds between polls")
    parser.add_argument("--max-attempts", type=int, default=None, help="Maximum number of polls")
    args = parser.parse_args()

    if args.scrape_run_id is None and not args.apify_run_id:
        parser.error("Provide a scrape run id or --apify-run-id")
    return args


def main():
    configure_logging()
    args = parse_args()

    db = SessionLocal()
    provider = get_apify_client()
    try:
        run_id = args.scrape_run_id
        if run_id is None:
            run = db.query(ScrapeRun).filter(ScrapeRun.apify_run_id == args.apify_run_id).first()
            if run is None:
                logger.error(f"No scrape run with provider run id {args.apify_run_id}")
                sys.exit(1)
            run_id = run.id

        service = ScrapeSyncService(db, provider)
        if args.poll:
            result = service.poll_until_terminal(run_id, args.interval, args.max_attempts)
        else:
            result = service.sync(run_id)

        if result is None:
            logger.error(f"Scrape run {run_id} not found or has no provider run id")
            sys.exit(1)

        logger.info(f"Scrape run {run_id}: {result.model_dump_json()}")
    except ProviderError as e:
        logger.error(f"Provider error: {e}")
        sys.exit(1)
    finally:
        provider.close()
        db.close()


if __name__ == "__main__":
    main()
