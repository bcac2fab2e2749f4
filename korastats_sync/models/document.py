from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column

from korastats_sync.models.sql_types import DOCUMENT_SQL_TYPE, KORASTATS_ID_SQL_TYPE
from korastats_sync.utils.timestamps import utcnow


class DocumentMixin:
    """Columns shared by every synced collection.

    The canonical record lives in ``document``; the remaining columns mirror
    fields that are filtered on (purge, status queries).
    """

    korastats_id: Mapped[int] = mapped_column(
        KORASTATS_ID_SQL_TYPE, primary_key=True, autoincrement=False
    )
    document: Mapped[dict[str, Any]] = mapped_column(DOCUMENT_SQL_TYPE, nullable=False, default=dict)
    sync_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    last_synced: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    @classmethod
    def index_columns(cls, document: dict[str, Any]) -> dict[str, Any]:
        """Column values derived from the document, overridden per collection."""
        return {}

    def apply_document(self, document: dict[str, Any], synced_at: datetime) -> None:
        self.document = document
        self.sync_version = document["sync_version"]
        self.last_synced = synced_at
        for column, value in self.index_columns(document).items():
            setattr(self, column, value)
