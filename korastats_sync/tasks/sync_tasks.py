import logging

from celery.signals import worker_process_shutdown

from korastats_sync.schemas.sync import PhaseResult, SyncOptions
from korastats_sync.services.errors import PhaseFatalError, SyncLockError
from korastats_sync.services.sync.orchestrator import PHASES, SyncOrchestrator
from korastats_sync.tasks import celery_app
from korastats_sync.utils.async_celery import cleanup_event_loop, run_async

logger = logging.getLogger(__name__)


def _results_dict(results: dict[str, PhaseResult]) -> dict:
    return {key: result.to_dict() for key, result in results.items()}


async def _full_sync(options: dict | None = None) -> dict:
    orchestrator = SyncOrchestrator(options=SyncOptions(**(options or {})))
    try:
        results = await orchestrator.full_sync()
    except SyncLockError as e:
        logger.warning(f"Full sync skipped: {e.message}")
        return {"skipped": True, "reason": e.message}
    return _results_dict(results)


async def _sync_phase(
    phase: str,
    tournament_id: int | None = None,
    options: dict | None = None,
) -> dict:
    if phase not in PHASES:
        raise ValueError(f"Unknown phase: {phase}")
    sync_options = SyncOptions(**(options or {}))
    orchestrator = SyncOrchestrator(options=sync_options)

    if not PHASES[phase].per_tournament:
        tournament_ids = [None]
    elif tournament_id is not None:
        tournament_ids = [tournament_id]
    else:
        tournament_ids = sync_options.resolved_tournament_ids()

    results: dict[str, PhaseResult] = {}
    for tid in tournament_ids:
        strategy = orchestrator.strategy(phase, tournament_id=tid)
        try:
            result = await orchestrator.run_phase(strategy)
        except PhaseFatalError as e:
            snapshot = orchestrator.progress()[strategy.key]
            result = PhaseResult(strategy.key, snapshot, fatal_error=e.describe())
        results[strategy.key] = result
        await orchestrator.sync_log.record_phase(result, tournament_id=tid)
    return _results_dict(results)


@celery_app.task(name="korastats_sync.tasks.sync_tasks.full_sync")
def full_sync(options: dict | None = None):
    """Celery task: every phase for every configured tournament."""
    return run_async(_full_sync(options))


@celery_app.task(name="korastats_sync.tasks.sync_tasks.sync_phase")
def sync_phase(phase: str, tournament_id: int | None = None, options: dict | None = None):
    """Celery task: one phase, for one tournament or all configured ones."""
    return run_async(_sync_phase(phase, tournament_id, options))


@celery_app.task(name="korastats_sync.tasks.sync_tasks.sync_matches")
def sync_matches(tournament_id: int | None = None):
    """Celery task: refresh matches of the configured tournaments."""
    return run_async(_sync_phase("matches", tournament_id))


@worker_process_shutdown.connect
def _close_loop(**kwargs):
    cleanup_event_loop()
