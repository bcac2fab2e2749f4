"""
Persisted sync run history.

A ``running`` full-sync row is also the run lock: while a fresh one exists
another full sync refuses to start. Rows older than
``sync_lock_stale_minutes`` are treated as abandoned and closed as failed.
"""
import logging
from datetime import timedelta
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from korastats_sync.config import get_settings
from korastats_sync.database import AsyncSessionLocal
from korastats_sync.models import SyncLog, SyncLogStatus, SyncType
from korastats_sync.schemas.sync import PhaseResult
from korastats_sync.services.errors import SyncLockError
from korastats_sync.utils.timestamps import utcnow

logger = logging.getLogger(__name__)
settings = get_settings()


def _duration_ms(started_at, completed_at) -> int:
    if started_at.tzinfo is None:
        started_at = started_at.replace(tzinfo=completed_at.tzinfo)
    return int((completed_at - started_at).total_seconds() * 1000)


class SyncLogService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        stale_minutes: int | None = None,
    ):
        self.session_factory = session_factory or AsyncSessionLocal
        self.stale_minutes = stale_minutes or settings.sync_lock_stale_minutes

    async def acquire_lock(self, tournament_id: int | None = None) -> int:
        """
        Open a running full-sync row and return its id.

        Raises:
            SyncLockError: a fresh full sync is already running
        """
        now = utcnow()
        stale_before = now - timedelta(minutes=self.stale_minutes)

        async with self.session_factory() as session:
            running = await self._fresh_running(session, stale_before)
            if running is not None:
                raise SyncLockError(
                    f"full sync {running.id} running since {running.started_at}",
                    entity="sync",
                    entity_id=running.id,
                )

            await session.execute(
                update(SyncLog)
                .where(
                    SyncLog.sync_type == SyncType.full,
                    SyncLog.sync_status == SyncLogStatus.running,
                    SyncLog.started_at < stale_before,
                )
                .values(
                    sync_status=SyncLogStatus.failed,
                    completed_at=now,
                    errors=["abandoned: lock expired"],
                )
            )

            run = SyncLog(
                sync_type=SyncType.full,
                sync_status=SyncLogStatus.running,
                tournament_id=tournament_id,
                started_at=now,
            )
            session.add(run)
            try:
                await session.commit()
            except IntegrityError as e:
                # Another process inserted its running row after our check
                await session.rollback()
                raise SyncLockError("full sync started concurrently", entity="sync") from e
            logger.info(f"Acquired sync lock (run {run.id})")
            return run.id

    async def _fresh_running(self, session: AsyncSession, stale_before) -> SyncLog | None:
        result = await session.execute(
            select(SyncLog).where(
                SyncLog.sync_type == SyncType.full,
                SyncLog.sync_status == SyncLogStatus.running,
                SyncLog.started_at >= stale_before,
            )
        )
        return result.scalars().first()

    async def record_phase(
        self,
        result: PhaseResult,
        tournament_id: int | None = None,
        sync_type: SyncType = SyncType.phase,
    ) -> int:
        """Persist the outcome of one phase."""
        snapshot = result.snapshot
        completed_at = snapshot.end_time or utcnow()
        started_at = snapshot.start_time or completed_at

        async with self.session_factory() as session:
            log = SyncLog(
                sync_type=sync_type,
                sync_status=SyncLogStatus.failed if result.aborted else SyncLogStatus.completed,
                phase=result.phase,
                tournament_id=tournament_id,
                started_at=started_at,
                completed_at=completed_at,
                duration_ms=_duration_ms(started_at, completed_at),
                records_processed=snapshot.processed,
                records_created=snapshot.created,
                records_updated=snapshot.updated,
                records_skipped=snapshot.skipped,
                records_failed=snapshot.failed,
                errors=list(snapshot.errors) or None,
            )
            session.add(log)
            await session.commit()
            return log.id

    async def finish(self, run_id: int, results: dict[str, PhaseResult], failed: bool = False) -> None:
        """Close a full-sync row with totals over its phases."""
        now = utcnow()
        snapshots = [r.snapshot for r in results.values()]
        fatal = [r.fatal_error for r in results.values() if r.fatal_error]

        async with self.session_factory() as session:
            run = await session.get(SyncLog, run_id)
            if run is None:
                logger.warning(f"Sync run {run_id} vanished before it could be closed")
                return
            run.sync_status = SyncLogStatus.failed if failed else SyncLogStatus.completed
            run.completed_at = now
            run.duration_ms = _duration_ms(run.started_at, now)
            run.records_processed = sum(s.processed for s in snapshots)
            run.records_created = sum(s.created for s in snapshots)
            run.records_updated = sum(s.updated for s in snapshots)
            run.records_skipped = sum(s.skipped for s in snapshots)
            run.records_failed = sum(s.failed for s in snapshots)
            run.errors = fatal or None
            await session.commit()

        logger.info(f"Sync run {run_id} finished ({'failed' if failed else 'completed'})")

    async def last_run(self) -> dict[str, Any] | None:
        async with self.session_factory() as session:
            result = await session.execute(
                select(SyncLog)
                .where(SyncLog.sync_type == SyncType.full)
                .order_by(SyncLog.started_at.desc(), SyncLog.id.desc())
                .limit(1)
            )
            run = result.scalar_one_or_none()
            if run is None:
                return None
            return {
                "id": run.id,
                "status": run.sync_status.value,
                "started_at": run.started_at.isoformat() if run.started_at else None,
                "completed_at": run.completed_at.isoformat() if run.completed_at else None,
                "duration_ms": run.duration_ms,
                "records_processed": run.records_processed,
                "records_created": run.records_created,
                "records_updated": run.records_updated,
                "records_skipped": run.records_skipped,
                "records_failed": run.records_failed,
                "errors": run.errors or [],
            }
