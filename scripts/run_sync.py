#!/usr/bin/env python3
"""
Run a Korastats sync from the command line.

Usage:
    python -m scripts.run_sync                               # full sync
    python -m scripts.run_sync --phase matches --tournament-id 840
    python -m scripts.run_sync --phase players --limit 20 --skip-existing
    python -m scripts.run_sync --status --tournament-id 840
    python -m scripts.run_sync --init-db
"""

import argparse
import asyncio
import json
import logging

from korastats_sync.config import get_settings
from korastats_sync.database import init_models
from korastats_sync.schemas.sync import PhaseResult, ProgressSnapshot, SyncOptions
from korastats_sync.services.errors import PhaseFatalError, SyncLockError
from korastats_sync.services.sync.orchestrator import PHASES, SyncOrchestrator

LOGGER = logging.getLogger("run_sync")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sync Korastats data into the document store")
    parser.add_argument(
        "--phase",
        action="append",
        choices=list(PHASES),
        help="Phase to run (repeatable). Without --tournament-id runs a full sync restricted to these phases",
    )
    parser.add_argument("--tournament-id", type=int, action="append", help="Tournament ID (repeatable)")
    parser.add_argument("--season", help="Season label override, e.g. 2024/2025")
    parser.add_argument("--batch-size", type=int, help="Items fetched concurrently per batch")
    parser.add_argument("--delay-ms", type=int, help="Pause between batches in milliseconds")
    parser.add_argument("--limit", type=int, help="Process only the first N IDs of each phase")
    parser.add_argument("--force-resync", action="store_true", help="Re-fetch items that already exist")
    parser.add_argument("--skip-existing", action="store_true", help="Skip IDs already stored")
    parser.add_argument("--status", action="store_true", help="Print sync status and exit")
    parser.add_argument("--init-db", action="store_true", help="Create missing tables before running")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args()


def build_options(args: argparse.Namespace) -> SyncOptions:
    values = {
        "tournament_ids": args.tournament_id,
        "season": args.season,
        "batch_size": args.batch_size,
        "delay_between_batches_ms": args.delay_ms,
        "limit": args.limit,
        "force_resync": args.force_resync,
        "skip_existing": args.skip_existing,
        "phases": args.phase,
    }
    return SyncOptions(**{key: value for key, value in values.items() if value is not None})


def log_progress(snapshot: ProgressSnapshot) -> None:
    if snapshot.total:
        LOGGER.debug(
            "%s [%s] %d/%d done, %d failed",
            snapshot.phase,
            snapshot.state.value,
            snapshot.processed,
            snapshot.total,
            snapshot.failed,
        )


def log_results(results: dict[str, PhaseResult]) -> None:
    for key, result in results.items():
        snap = result.snapshot
        LOGGER.info(
            "%-22s %-9s total=%d completed=%d failed=%d skipped=%d created=%d updated=%d",
            key,
            snap.state.value,
            snap.total,
            snap.completed,
            snap.failed,
            snap.skipped,
            snap.created,
            snap.updated,
        )
        if result.fatal_error:
            LOGGER.error("  %s", result.fatal_error)
        for error in snap.errors[:10]:
            LOGGER.warning("  %s", error)
        if len(snap.errors) > 10 or snap.dropped_errors:
            LOGGER.warning("  ... %d more errors", len(snap.errors) - 10 + snap.dropped_errors)


async def run_phases(orchestrator: SyncOrchestrator, options: SyncOptions) -> dict[str, PhaseResult]:
    """Run the selected phases for explicit tournaments, outside the full-sync lock."""
    results: dict[str, PhaseResult] = {}
    phases = options.phases or list(PHASES)
    for name in phases:
        targets = options.resolved_tournament_ids() if PHASES[name].per_tournament else [None]
        for tournament_id in targets:
            strategy = orchestrator.strategy(name, tournament_id, options)
            try:
                results[strategy.key] = await orchestrator.run_phase(strategy)
            except PhaseFatalError as e:
                results[strategy.key] = PhaseResult(
                    strategy.key, orchestrator.progress()[strategy.key], fatal_error=e.describe()
                )
            await orchestrator.sync_log.record_phase(results[strategy.key], tournament_id=tournament_id)
    return results


async def run(args: argparse.Namespace) -> int:
    if args.force_resync and args.skip_existing:
        LOGGER.error("Use either --force-resync or --skip-existing, not both")
        return 2

    if args.init_db:
        await init_models()
        LOGGER.info("Database tables are in place")

    options = build_options(args)
    orchestrator = SyncOrchestrator(options=options, on_progress=log_progress)

    if args.status:
        tournament_id = args.tournament_id[0] if args.tournament_id else None
        status = await orchestrator.sync_status(tournament_id)
        print(json.dumps(status, indent=2, ensure_ascii=False))
        return 0

    if args.tournament_id and args.phase:
        results = await run_phases(orchestrator, options)
    else:
        try:
            results = await orchestrator.full_sync(options)
        except SyncLockError as e:
            LOGGER.error("Sync not started: %s", e.message)
            return 3

    log_results(results)
    return 1 if any(result.aborted for result in results.values()) else 0


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else get_settings().log_level,
        format="%(asctime)s %(levelname)s %(message)s",
    )
    raise SystemExit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
