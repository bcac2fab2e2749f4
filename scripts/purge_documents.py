#!/usr/bin/env python3
"""
Delete stored documents of one collection.

Filters combine; at least one is required. Dry-run is the default mode.

Usage:
    python -m scripts.purge_documents --collection matches --tournament-id 840 --dry-run
    python -m scripts.purge_documents --collection players --ids 101 102 --apply
    python -m scripts.purge_documents --collection referees --before 2025-01-01 --apply
"""

import argparse
import asyncio
import logging

from korastats_sync.config import get_settings
from korastats_sync.models import DOCUMENT_MODELS
from korastats_sync.services.sync.repository import DocumentRepository
from korastats_sync.utils.timestamps import parse_provider_datetime

LOGGER = logging.getLogger("purge_documents")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Purge Korastats documents")
    parser.add_argument("--collection", required=True, choices=list(DOCUMENT_MODELS))
    parser.add_argument("--ids", nargs="+", type=int, help="Korastats IDs to delete")
    parser.add_argument("--before", help="Delete documents last synced before this date (YYYY-MM-DD)")
    parser.add_argument("--tournament-id", type=int, help="Matches of one tournament")
    parser.add_argument("--dry-run", action="store_true", help="Count matching documents (default mode)")
    parser.add_argument("--apply", action="store_true", help="Delete matching documents")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args()


async def run(args: argparse.Namespace) -> int:
    if args.dry_run and args.apply:
        LOGGER.error("Use either --dry-run or --apply, not both")
        return 2
    if not (args.ids or args.before or args.tournament_id):
        LOGGER.error("Give at least one of --ids, --before, --tournament-id")
        return 2

    before = None
    if args.before:
        before = parse_provider_datetime(args.before)
        if before is None:
            LOGGER.error("Cannot parse --before %r", args.before)
            return 2

    dry_run = args.dry_run or not args.apply
    repository = DocumentRepository()
    try:
        count = await repository.purge(
            args.collection,
            ids=args.ids,
            before=before,
            tournament_id=args.tournament_id,
            dry_run=dry_run,
        )
    except ValueError as e:
        LOGGER.error("%s", e)
        return 2

    if dry_run:
        LOGGER.info("[DRY-RUN] %d %s documents match; nothing deleted", count, args.collection)
    else:
        LOGGER.info("Deleted %d %s documents", count, args.collection)
    return 0


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else get_settings().log_level,
        format="%(asctime)s %(levelname)s %(message)s",
    )
    raise SystemExit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
