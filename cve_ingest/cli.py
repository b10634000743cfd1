import argparse
import logging
import sys
from pathlib import Path

from .config.settings import get_db_config, get_settings
from .db.database import CveDatabase
from .pipeline import run_archive_import, run_delta_import, run_init_schema
from .sources.base.exceptions import ConfigException, CveIngestException
from .sources.circl import DeltaFeedClient
from .sources.nvd import ArchiveFetcher

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO", log_file: str = None):
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cve_ingest",
        description="Load CVE advisories from the NVD archive and the CIRCL delta feed into PostgreSQL.")
    parser.add_argument("--init-schema", action="store_true",
                        help="Create the store tables if they do not exist")
    parser.add_argument("--archive", action="store_true",
                        help="Ingest the NVD yearly archive feeds")
    parser.add_argument("--delta", action="store_true",
                        help="Ingest the CIRCL latest-changes feed")
    parser.add_argument("--year", type=int, action="append", dest="years",
                        help="Archive year to ingest (repeatable); defaults to FIRST_YEAR..LAST_YEAR")
    parser.add_argument("--cache-dir", type=Path, default=None,
                        help="Directory holding the cached archive files (overrides CACHE_DIR)")
    parser.add_argument("--env-file", default=None,
                        help="Path to a .env file with DB_* and feed settings")
    parser.add_argument("--log-file", default=None,
                        help="Also write log output to this file")
    parser.add_argument("--no-progress", action="store_true",
                        help="Disable the per-year progress bar")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not (args.init_schema or args.archive or args.delta):
        parser.error("choose at least one of --init-schema, --archive, --delta")

    step = "configuration"
    try:
        settings = get_settings(args.env_file)
    except ConfigException as e:
        setup_logging(log_file=args.log_file)
        logger.error(f"Run aborted during {step}: {type(e).__name__}: {e}")
        return 1
    setup_logging(settings.LOG_LEVEL, args.log_file)

    try:
        db_config = get_db_config(settings)
        years = sorted(args.years) if args.years else settings.archive_years()
        cache_dir = args.cache_dir or settings.CACHE_DIR

        step = "database connection"
        with CveDatabase(db_config) as db:
            if args.init_schema:
                step = "schema initialization"
                run_init_schema(db)

            if args.archive:
                step = "archive import"
                with ArchiveFetcher(cache_dir, years=years,
                                    url_template=settings.ARCHIVE_URL_TEMPLATE,
                                    timeout=settings.HTTP_TIMEOUT) as fetcher:
                    run_archive_import(db, fetcher, show_progress=not args.no_progress)

            if args.delta:
                step = "delta import"
                with DeltaFeedClient(settings.DELTA_URL, timeout=settings.HTTP_TIMEOUT) as client:
                    run_delta_import(db, client)

            db.print_stats()
    except CveIngestException as e:
        logger.error(f"Run aborted during {step}: {type(e).__name__}: {e}")
        return 1

    logger.info("Run complete.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
