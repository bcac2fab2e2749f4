import enum
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Enum, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from korastats_sync.database import Base
from korastats_sync.models.sql_types import DOCUMENT_SQL_TYPE
from korastats_sync.utils.timestamps import utcnow


class SyncType(str, enum.Enum):
    """Scope of a recorded sync run."""
    full = "full"
    phase = "phase"
    manual = "manual"


class SyncLogStatus(str, enum.Enum):
    running = "running"
    completed = "completed"
    failed = "failed"


class SyncLog(Base):
    """
    Outcome of one sync run or one phase inside a run.

    A ``running`` full-sync row doubles as the sync lock: a second full sync
    refuses to start while a fresh one exists. The partial unique index allows
    at most one running row per sync type.
    """
    __tablename__ = "sync_logs"
    __table_args__ = (
        Index("ix_sync_logs_type_status", "sync_type", "sync_status"),
        Index(
            "uq_sync_logs_running",
            "sync_type",
            unique=True,
            postgresql_where=text("sync_status = 'running'"),
            sqlite_where=text("sync_status = 'running'"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sync_type: Mapped[SyncType] = mapped_column(Enum(SyncType), nullable=False)
    sync_status: Mapped[SyncLogStatus] = mapped_column(
        Enum(SyncLogStatus), nullable=False, default=SyncLogStatus.running
    )
    phase: Mapped[str | None] = mapped_column(String(50))
    tournament_id: Mapped[int | None] = mapped_column(Integer, index=True)

    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    duration_ms: Mapped[int | None] = mapped_column(Integer)

    records_processed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    records_created: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    records_updated: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    records_skipped: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    records_failed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    errors: Mapped[list[Any] | None] = mapped_column(DOCUMENT_SQL_TYPE)
