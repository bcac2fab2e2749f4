import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from korastats_sync.config import get_settings

settings = get_settings()


class SyncOptions(BaseModel):
    """Options accepted by the orchestrator, the Celery tasks and the CLI."""

    tournament_ids: list[int] | None = None
    season: str | None = Field(default_factory=lambda: settings.sync_season)
    batch_size: int = Field(default_factory=lambda: settings.sync_batch_size, ge=1)
    delay_between_batches_ms: int = Field(
        default_factory=lambda: settings.sync_delay_between_batches_ms, ge=0
    )
    force_resync: bool = False
    skip_existing: bool = False
    limit: int | None = Field(None, ge=1)
    # Accepted for compatibility; items are never retried by the pipeline
    max_retries: int = 0
    phases: list[str] | None = None

    def resolved_tournament_ids(self) -> list[int]:
        return list(self.tournament_ids or settings.sync_tournament_ids)


class PhaseState(str, enum.Enum):
    IDLE = "idle"
    LISTING = "listing"
    BATCHING = "batching"
    DRAINING = "draining"
    COMPLETED = "completed"
    ABORTED = "aborted"


class ItemStatus(str, enum.Enum):
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ItemOutcome:
    """Result of one Collector -> Mapper -> Merge-Upsert chain."""

    item_id: int
    status: ItemStatus
    created: bool = False
    error: str | None = None


@dataclass(frozen=True)
class ProgressSnapshot:
    phase: str
    state: PhaseState = PhaseState.IDLE
    total: int = 0
    completed: int = 0
    failed: int = 0
    skipped: int = 0
    created: int = 0
    updated: int = 0
    errors: tuple[str, ...] = ()
    dropped_errors: int = 0
    current: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None

    @property
    def processed(self) -> int:
        return self.completed + self.failed

    @property
    def finished(self) -> bool:
        return self.state in (PhaseState.COMPLETED, PhaseState.ABORTED)

    def to_dict(self) -> dict[str, Any]:
        return {
            "phase": self.phase,
            "state": self.state.value,
            "total": self.total,
            "completed": self.completed,
            "failed": self.failed,
            "skipped": self.skipped,
            "created": self.created,
            "updated": self.updated,
            "errors": list(self.errors),
            "dropped_errors": self.dropped_errors,
            "current": self.current,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
        }


@dataclass(frozen=True)
class PhaseResult:
    phase: str
    snapshot: ProgressSnapshot
    fatal_error: str | None = None
    outcomes: tuple[ItemOutcome, ...] = field(default=(), repr=False)

    @property
    def aborted(self) -> bool:
        return self.snapshot.state == PhaseState.ABORTED

    def to_dict(self) -> dict[str, Any]:
        data = self.snapshot.to_dict()
        data["fatal_error"] = self.fatal_error
        return data
