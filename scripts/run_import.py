"""
Script to run the import pipeline for all (or selected) mappings

Usage:
    python scripts/run_import.py [--dry-run] [--skip-existing] [--verbose]
                                 [--mapping <id> ...] [--target <database-url>]
                                 [--data-dir <path>] [--list]
"""

import argparse
import asyncio
import signal
import sys
import os
import logging
from typing import List, Optional

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

import httpx

from core.config import settings
from core.database import create_engine, create_session_maker, init_models
from core.exceptions import ConfigurationError
from core.logging import setup_logging
from ingestion.catalog import build_registry
from ingestion.mapping import MappingRegistry
from ingestion.report import format_report
from ingestion.runner import run_import_pipeline
from schemas.options import PipelineOptions
from store.sql_client import SQLUpsertClient

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="run_import",
        description="Import external sources into the document store"
    )
    parser.add_argument("--dry-run", action="store_true",
                        help="Classify records without writing to the store")
    parser.add_argument("--skip-existing", action="store_true",
                        help="Never update documents that already exist")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log every record outcome and enable debug logging")
    parser.add_argument("--mapping", action="append", dest="mappings", metavar="ID",
                        help="Run only this mapping id (repeatable)")
    parser.add_argument("--target", metavar="DATABASE_URL",
                        help="Store database URL (default: settings.DATABASE_URL)")
    parser.add_argument("--data-dir", metavar="PATH",
                        help="Directory holding bulk source files (default: settings.DATA_DIR)")
    parser.add_argument("--list", action="store_true",
                        help="List configured mappings and exit")
    return parser


def print_mappings(registry: MappingRegistry):
    print("Available mappings:")
    for mapping_id in registry.ids:
        print(f"  - {mapping_id}")
    for mapping_id, reason in registry.unavailable.items():
        print(f"  - {mapping_id} (unavailable: {reason})")


def install_signal_handlers(cancel_event: asyncio.Event):
    """SIGINT/SIGTERM request a graceful stop instead of killing the run"""
    loop = asyncio.get_running_loop()

    def request_stop(signame: str):
        logger.warning(f"Received {signame}; finishing in-flight records")
        cancel_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, request_stop, sig.name)
        except NotImplementedError:
            # Windows event loops have no add_signal_handler
            logger.debug(f"Signal handler for {sig.name} not supported")


async def run_import(args: argparse.Namespace) -> int:
    options = PipelineOptions(
        dry_run=args.dry_run,
        skip_existing=args.skip_existing,
        verbose=args.verbose
    )
    logger.info(f"Starting import run ({settings.ENVIRONMENT})")
    cancel_event = asyncio.Event()
    install_signal_handlers(cancel_event)

    engine = create_engine(args.target)
    try:
        async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT) as http_client:
            registry = build_registry(settings, http_client=http_client, data_dir=args.data_dir)

            if args.list:
                print_mappings(registry)
                return 0

            try:
                mappings = registry.select(args.mappings)
            except ConfigurationError as e:
                logger.error(f"Configuration error: {e.message}")
                print(f"Error: {e.message}", file=sys.stderr)
                print_mappings(registry)
                return 1

            await init_models(engine)
            client = SQLUpsertClient(create_session_maker(engine))
            try:
                result = await run_import_pipeline(
                    mappings,
                    client,
                    options=options,
                    cancel_event=cancel_event
                )
            finally:
                await client.close()

        print(format_report(result))
        return 0 if result.success else 1
    finally:
        await engine.dispose()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(verbose=args.verbose)
    return asyncio.run(run_import(args))


if __name__ == "__main__":
    sys.exit(main())
