"""
Run orchestration for the three operating modes:

1. initialize the store schema
2. ingest the full multi-year NVD archive
3. ingest the CIRCL latest-changes feed

Every record flows into the store one at a time. The first error aborts the run.
"""

import logging

from .db.database import CveDatabase
from .sources.circl import DeltaFeedClient
from .sources.nvd import ArchiveFetcher

logger = logging.getLogger(__name__)


def run_init_schema(db: CveDatabase):
    logger.info("Initializing database schema...")
    db.initialize_schema()


def run_archive_import(db: CveDatabase, fetcher: ArchiveFetcher,
                       show_progress: bool = True) -> int:
    """Ingest every configured year, ascending; returns the number of records stored"""
    logger.info(f"--- Starting NVD archive import for {len(fetcher.years)} years ---")
    total = db.ingest(fetcher.fetch_records(show_progress=show_progress))
    logger.info(f"--- Finished NVD archive import: {total:,} records ---")
    return total


def run_delta_import(db: CveDatabase, client: DeltaFeedClient) -> int:
    """Ingest the latest-changes feed; returns the number of records stored"""
    logger.info("--- Starting delta feed import ---")
    records = client.fetch_records()
    total = db.ingest(records)
    logger.info(f"--- Finished delta feed import: {total:,} records ---")
    return total
