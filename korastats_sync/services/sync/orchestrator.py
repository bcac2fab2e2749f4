"""
Sync orchestrator.

Drives phases end-to-end: list IDs, split them into contiguous batches, run
one Collector -> Mapper -> Merge-Upsert chain per ID concurrently within a
batch, wait for the whole batch to settle, pause, then move on. Item
failures are recorded in the phase progress; only a listing failure aborts
a phase.

Full sync order:
1. tournaments (configured IDs)
2. per tournament: teams, matches, players, coaches, referees, standings
"""
import asyncio
import logging
from typing import Any

from korastats_sync.config import get_settings
from korastats_sync.models import DOCUMENT_MODELS
from korastats_sync.schemas.sync import (
    ItemOutcome,
    ItemStatus,
    PhaseResult,
    PhaseState,
    ProgressSnapshot,
    SyncOptions,
)
from korastats_sync.services.errors import MappingError, PhaseFatalError, SyncError
from korastats_sync.services.korastats_client import KorastatsClient, get_korastats_client
from korastats_sync.services.sync.base import PhaseStrategy, chunked, unique_ids
from korastats_sync.services.sync.entity_sync import CoachSync, PlayerSync, RefereeSync
from korastats_sync.services.sync.match_sync import MatchSync
from korastats_sync.services.sync.progress import ProgressListener, ProgressTracker
from korastats_sync.services.sync.repository import DocumentRepository
from korastats_sync.services.sync.standings_sync import StandingsSync
from korastats_sync.services.sync.sync_log import SyncLogService
from korastats_sync.services.sync.team_sync import TeamSync
from korastats_sync.services.sync.tournament_sync import TournamentSync

logger = logging.getLogger(__name__)
settings = get_settings()

# Registry in full-sync order
PHASES: dict[str, type[PhaseStrategy]] = {
    "tournaments": TournamentSync,
    "teams": TeamSync,
    "matches": MatchSync,
    "players": PlayerSync,
    "coaches": CoachSync,
    "referees": RefereeSync,
    "standings": StandingsSync,
}


def describe_failure(error: Exception, entity: str, entity_id: int) -> str:
    """Error line for the progress list: "<Kind> <entity> <id>: <message>"."""
    if isinstance(error, SyncError):
        if error.entity is None:
            error.entity = entity
        if error.entity_id is None:
            error.entity_id = entity_id
        return error.describe()
    return f"{type(error).__name__} {entity} {entity_id}: {error}"


class SyncOrchestrator:
    """
    Single orchestrator for every phase.

    Phase-specific behaviour lives in ``PhaseStrategy`` objects selected by
    name from ``PHASES``.
    """

    def __init__(
        self,
        client: KorastatsClient | None = None,
        repository: DocumentRepository | None = None,
        sync_log: SyncLogService | None = None,
        options: SyncOptions | None = None,
        on_progress: ProgressListener | None = None,
        max_errors: int | None = None,
    ):
        self.client = client or get_korastats_client()
        self.repository = repository or DocumentRepository()
        self.sync_log = sync_log or SyncLogService()
        self.options = options or SyncOptions()
        self.on_progress = on_progress
        self.max_errors = max_errors or settings.sync_max_errors
        self._trackers: dict[str, ProgressTracker] = {}

    def strategy(
        self,
        phase: str,
        tournament_id: int | None = None,
        options: SyncOptions | None = None,
    ) -> PhaseStrategy:
        try:
            strategy_cls = PHASES[phase]
        except KeyError:
            raise ValueError(f"Unknown phase: {phase}. Known: {', '.join(PHASES)}") from None
        if strategy_cls.per_tournament and tournament_id is None:
            raise ValueError(f"Phase {phase} requires a tournament id")
        return strategy_cls(
            self.client,
            options or self.options,
            tournament_id if strategy_cls.per_tournament else None,
        )

    def progress(self) -> dict[str, ProgressSnapshot]:
        """Latest snapshot of every phase started by this orchestrator."""
        return {key: tracker.snapshot() for key, tracker in self._trackers.items()}

    # ==================== Phase ====================

    async def run_phase(
        self,
        strategy: PhaseStrategy,
        ids: list[int] | None = None,
        batch_size: int | None = None,
        delay_ms: int | None = None,
    ) -> PhaseResult:
        """
        Run one phase and return its final progress.

        Raises:
            PhaseFatalError: the phase could not list its IDs
        """
        options = strategy.options
        batch_size = batch_size or options.batch_size
        delay_ms = options.delay_between_batches_ms if delay_ms is None else delay_ms
        key = strategy.key
        log_extra = {"phase": key}

        tracker = ProgressTracker(key, self.max_errors, self.on_progress)
        self._trackers[key] = tracker
        await tracker.start(strategy.describe())
        logger.info(f"Phase {key}: started", extra=log_extra)

        if ids is None:
            try:
                ids = await strategy.list_ids()
            except Exception as e:
                fatal = PhaseFatalError(key, f"cannot list {strategy.name}: {e}")
                await tracker.finish(aborted=True, error=fatal.describe())
                logger.error(f"Phase {key}: aborted, {fatal.message}", extra=log_extra)
                raise fatal from e

        ids = unique_ids(ids)
        if options.limit:
            ids = ids[:options.limit]
        await tracker.set_total(len(ids))

        batches = list(chunked(ids, batch_size))
        outcomes: list[ItemOutcome] = []
        for number, batch in enumerate(batches, start=1):
            logger.info(
                f"Phase {key}: batch {number}/{len(batches)} ({len(batch)} items)",
                extra={**log_extra, "batch": number},
            )
            await tracker.set_state(
                PhaseState.BATCHING, current=f"{strategy.describe()} (batch {number}/{len(batches)})"
            )
            results = await asyncio.gather(
                *(self._run_item(strategy, entity_id, tracker) for entity_id in batch),
                return_exceptions=True,
            )
            for entity_id, result in zip(batch, results):
                if isinstance(result, BaseException):
                    if not isinstance(result, Exception):
                        raise result
                    result = ItemOutcome(
                        entity_id,
                        ItemStatus.FAILED,
                        error=describe_failure(result, strategy.entity, entity_id),
                    )
                    await tracker.record(result)
                outcomes.append(result)

            if number < len(batches) and delay_ms > 0:
                await asyncio.sleep(delay_ms / 1000)

        await tracker.set_state(PhaseState.DRAINING)
        snapshot = await tracker.finish()
        logger.info(
            f"Phase {key}: completed {snapshot.completed}/{snapshot.total}, "
            f"failed {snapshot.failed}, skipped {snapshot.skipped}",
            extra=log_extra,
        )
        return PhaseResult(key, snapshot, outcomes=tuple(outcomes))

    async def _run_item(
        self, strategy: PhaseStrategy, entity_id: int, tracker: ProgressTracker
    ) -> ItemOutcome:
        """Collector -> Mapper -> Merge-Upsert for one ID; never raises Exception."""
        options = strategy.options
        extra = {"phase": strategy.key, "item_id": entity_id}
        try:
            if (
                options.skip_existing
                and not options.force_resync
                and await self.repository.exists(strategy.collection, entity_id)
            ):
                logger.debug(f"{strategy.entity} {entity_id}: exists, skipped", extra=extra)
                outcome = ItemOutcome(entity_id, ItemStatus.SKIPPED)
            else:
                logger.debug(f"{strategy.entity} {entity_id}: fetching", extra=extra)
                bundle = await strategy.collect(entity_id)

                logger.debug(f"{strategy.entity} {entity_id}: mapping", extra=extra)
                try:
                    record = strategy.map(bundle)
                except SyncError:
                    raise
                except Exception as e:
                    raise MappingError(str(e), strategy.entity, entity_id) from e

                logger.debug(f"{strategy.entity} {entity_id}: persisting", extra=extra)
                result = await self.repository.upsert(strategy.collection, record)
                outcome = ItemOutcome(entity_id, ItemStatus.SUCCEEDED, created=result.created)
        except Exception as e:
            error = describe_failure(e, strategy.entity, entity_id)
            logger.warning(f"Phase {strategy.key}: {error}", extra=extra)
            outcome = ItemOutcome(entity_id, ItemStatus.FAILED, error=error)

        await tracker.record(outcome)
        return outcome

    # ==================== Full sync ====================

    async def _run_recorded(
        self, strategy: PhaseStrategy, results: dict[str, PhaseResult]
    ) -> PhaseResult:
        """Run a phase inside a full sync; a fatal phase is recorded, not raised."""
        try:
            result = await self.run_phase(strategy)
        except PhaseFatalError as e:
            snapshot = self._trackers[strategy.key].snapshot()
            result = PhaseResult(strategy.key, snapshot, fatal_error=e.describe())

        results[strategy.key] = result
        await self.sync_log.record_phase(result, tournament_id=strategy.tournament_id)
        return result

    async def full_sync(self, options: SyncOptions | None = None) -> dict[str, PhaseResult]:
        """
        Run every selected phase for every configured tournament.

        Raises:
            SyncLockError: another full sync holds the lock
        """
        options = options or self.options
        phases = options.phases or list(PHASES)
        unknown = [name for name in phases if name not in PHASES]
        if unknown:
            raise ValueError(f"Unknown phases: {', '.join(unknown)}")

        tournament_ids = options.resolved_tournament_ids()
        run_id = await self.sync_log.acquire_lock()
        logger.info(f"Full sync {run_id}: phases={phases} tournaments={tournament_ids}")

        results: dict[str, PhaseResult] = {}
        try:
            if "tournaments" in phases:
                await self._run_recorded(self.strategy("tournaments", options=options), results)

            for tournament_id in tournament_ids:
                for name in phases:
                    if not PHASES[name].per_tournament:
                        continue
                    await self._run_recorded(self.strategy(name, tournament_id, options), results)
        except BaseException:
            await self.sync_log.finish(run_id, results, failed=True)
            raise

        failed = bool(results) and all(r.aborted for r in results.values())
        await self.sync_log.finish(run_id, results, failed=failed)
        return results

    # ==================== Status ====================

    async def sync_status(self, tournament_id: int | None = None) -> dict[str, Any]:
        """Document counts, the last run and live progress."""
        collections = {}
        for collection in DOCUMENT_MODELS:
            last_synced = await self.repository.last_synced(collection)
            collections[collection] = {
                "count": await self.repository.count(collection),
                "last_synced": last_synced.isoformat() if last_synced else None,
            }

        status: dict[str, Any] = {
            "collections": collections,
            "last_run": await self.sync_log.last_run(),
            "progress": {key: snap.to_dict() for key, snap in self.progress().items()},
        }
        if tournament_id is not None:
            status["tournament"] = {
                "id": tournament_id,
                "matches": await self.repository.count("matches", tournament_id=tournament_id),
                "progress": {
                    key: snap.to_dict()
                    for key, snap in self.progress().items()
                    if key.endswith(f":{tournament_id}")
                },
            }
        return status
