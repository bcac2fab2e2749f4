"""
Phase progress tracking.

Item chains never touch shared counters directly: each one returns an
immutable ``ItemOutcome`` which the tracker folds into a new
``ProgressSnapshot`` under an ``asyncio.Lock``. Pollers read the latest
snapshot at any time; an optional listener receives every new one.
"""
import asyncio
import dataclasses
import logging
from collections.abc import Callable

from korastats_sync.schemas.sync import ItemOutcome, ItemStatus, PhaseState, ProgressSnapshot
from korastats_sync.utils.timestamps import utcnow

logger = logging.getLogger(__name__)

ProgressListener = Callable[[ProgressSnapshot], None]


class ProgressTracker:
    def __init__(
        self,
        phase: str,
        max_errors: int = 100,
        on_progress: ProgressListener | None = None,
    ):
        self.max_errors = max_errors
        self.on_progress = on_progress
        self._lock = asyncio.Lock()
        self._snapshot = ProgressSnapshot(phase=phase)

    def snapshot(self) -> ProgressSnapshot:
        return self._snapshot

    def _publish(self, snapshot: ProgressSnapshot) -> ProgressSnapshot:
        self._snapshot = snapshot
        if self.on_progress is not None:
            try:
                self.on_progress(snapshot)
            except Exception as e:
                logger.warning(f"Progress listener failed for {snapshot.phase}: {e}")
        return snapshot

    async def _update(self, **changes) -> ProgressSnapshot:
        async with self._lock:
            return self._publish(dataclasses.replace(self._snapshot, **changes))

    async def start(self, current: str | None = None) -> ProgressSnapshot:
        return await self._update(
            state=PhaseState.LISTING, start_time=utcnow(), end_time=None, current=current
        )

    async def set_total(self, total: int) -> ProgressSnapshot:
        return await self._update(state=PhaseState.BATCHING, total=total)

    async def set_state(self, state: PhaseState, current: str | None = None) -> ProgressSnapshot:
        changes = {"state": state}
        if current is not None:
            changes["current"] = current
        return await self._update(**changes)

    async def record(self, outcome: ItemOutcome) -> ProgressSnapshot:
        """Fold one finished item into the snapshot."""
        async with self._lock:
            snap = self._snapshot
            if outcome.status == ItemStatus.FAILED:
                errors, dropped = snap.errors, snap.dropped_errors
                if outcome.error:
                    if len(errors) < self.max_errors:
                        errors = errors + (outcome.error,)
                    else:
                        dropped += 1
                updated = dataclasses.replace(
                    snap, failed=snap.failed + 1, errors=errors, dropped_errors=dropped
                )
            elif outcome.status == ItemStatus.SKIPPED:
                updated = dataclasses.replace(
                    snap, completed=snap.completed + 1, skipped=snap.skipped + 1
                )
            else:
                updated = dataclasses.replace(
                    snap,
                    completed=snap.completed + 1,
                    created=snap.created + (1 if outcome.created else 0),
                    updated=snap.updated + (0 if outcome.created else 1),
                )
            return self._publish(updated)

    async def finish(self, aborted: bool = False, error: str | None = None) -> ProgressSnapshot:
        async with self._lock:
            snap = self._snapshot
            errors = snap.errors
            if error:
                errors = errors + (error,)
            return self._publish(
                dataclasses.replace(
                    snap,
                    state=PhaseState.ABORTED if aborted else PhaseState.COMPLETED,
                    errors=errors,
                    current=None,
                    end_time=utcnow(),
                )
            )
