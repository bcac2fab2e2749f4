"""
Document repository.

Every write opens its own session from the session factory so that items of
one batch can be reconciled concurrently. Writes for the same document are
serialized in-process by a per-(collection, id) lock and across connections
by ``SELECT ... FOR UPDATE`` (a no-op on SQLite).
"""
import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from korastats_sync.database import AsyncSessionLocal
from korastats_sync.models import DOCUMENT_MODELS, Match
from korastats_sync.services.errors import PersistenceError
from korastats_sync.services.sync.reconcile import POLICIES, reconcile
from korastats_sync.utils.timestamps import utcnow

logger = logging.getLogger(__name__)


@dataclass
class _DocumentLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


@dataclass(frozen=True)
class UpsertResult:
    collection: str
    korastats_id: int
    created: bool
    sync_version: int

    @property
    def updated(self) -> bool:
        return not self.created


class DocumentRepository:
    """Read-modify-write access to the per-collection document tables."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None):
        self.session_factory = session_factory or AsyncSessionLocal
        self._locks: dict[tuple[str, int], _DocumentLock] = {}

    @staticmethod
    def model_for(collection: str):
        try:
            return DOCUMENT_MODELS[collection]
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}") from None

    @asynccontextmanager
    async def _locked(self, collection: str, korastats_id: int) -> AsyncIterator[None]:
        """Hold the document lock; the entry is dropped once no task holds or awaits it."""
        key = (collection, korastats_id)
        entry = self._locks.get(key)
        if entry is None:
            entry = self._locks[key] = _DocumentLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[key]

    async def upsert(
        self,
        collection: str,
        record: dict[str, Any],
        now: datetime | None = None,
    ) -> UpsertResult:
        """
        Reconcile ``record`` with the stored document and write the result.

        Raises:
            PersistenceError: the read or the write failed
        """
        model = self.model_for(collection)
        korastats_id = record.get("korastats_id")
        if korastats_id is None:
            raise PersistenceError("record has no korastats_id", collection)
        now = now or utcnow()

        async with self._locked(collection, korastats_id):
            try:
                async with self.session_factory() as session:
                    result = await session.execute(
                        select(model)
                        .where(model.korastats_id == korastats_id)
                        .with_for_update()
                    )
                    row = result.scalar_one_or_none()

                    document = reconcile(
                        row.document if row else None,
                        record,
                        POLICIES[collection],
                        now,
                    )

                    created = row is None
                    if created:
                        row = model(korastats_id=korastats_id, created_at=now)
                        session.add(row)
                    row.apply_document(document, now)

                    await session.commit()
            except SQLAlchemyError as e:
                raise PersistenceError(
                    f"{collection} upsert failed: {e}", collection, korastats_id
                ) from e

        logger.debug(
            f"Upserted {collection} {korastats_id} v{document['sync_version']}",
            extra={"collection": collection, "item_id": korastats_id},
        )
        return UpsertResult(collection, korastats_id, created, document["sync_version"])

    async def get(self, collection: str, korastats_id: int) -> dict[str, Any] | None:
        model = self.model_for(collection)
        async with self.session_factory() as session:
            result = await session.execute(
                select(model.document).where(model.korastats_id == korastats_id)
            )
            return result.scalar_one_or_none()

    async def exists(self, collection: str, korastats_id: int) -> bool:
        model = self.model_for(collection)
        async with self.session_factory() as session:
            result = await session.execute(
                select(model.korastats_id).where(model.korastats_id == korastats_id)
            )
            return result.scalar_one_or_none() is not None

    async def count(self, collection: str, tournament_id: int | None = None) -> int:
        model = self.model_for(collection)
        stmt = select(func.count()).select_from(model)
        if tournament_id is not None and model is Match:
            stmt = stmt.where(Match.tournament_id == tournament_id)
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return result.scalar_one()

    async def last_synced(self, collection: str) -> datetime | None:
        model = self.model_for(collection)
        async with self.session_factory() as session:
            result = await session.execute(select(func.max(model.last_synced)))
            return result.scalar_one_or_none()

    async def purge(
        self,
        collection: str,
        ids: list[int] | None = None,
        before: datetime | None = None,
        tournament_id: int | None = None,
        dry_run: bool = False,
    ) -> int:
        """
        Delete documents matching every given filter; returns the row count.

        At least one filter is required. ``tournament_id`` applies to matches
        only. With ``dry_run`` the matching rows are counted, not deleted.
        """
        if ids is None and before is None and tournament_id is None:
            raise ValueError("purge requires ids, before or tournament_id")

        model = self.model_for(collection)
        conditions = []
        if ids is not None:
            conditions.append(model.korastats_id.in_(ids))
        if before is not None:
            conditions.append(model.last_synced < before)
        if tournament_id is not None:
            if model is not Match:
                raise ValueError("tournament_id filter applies to matches only")
            conditions.append(Match.tournament_id == tournament_id)

        try:
            async with self.session_factory() as session:
                if dry_run:
                    result = await session.execute(
                        select(func.count()).select_from(model).where(*conditions)
                    )
                    return result.scalar_one()
                result = await session.execute(delete(model).where(*conditions))
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"{collection} purge failed: {e}", collection) from e

        logger.info(f"Purged {result.rowcount} {collection} documents")
        return result.rowcount
