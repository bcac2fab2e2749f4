from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from korastats_sync.database import Base
from korastats_sync.models.document import DocumentMixin
from korastats_sync.utils.timestamps import parse_provider_datetime


class Match(DocumentMixin, Base):
    __tablename__ = "matches"

    tournament_id: Mapped[int | None] = mapped_column(Integer, index=True)
    match_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), index=True)
    status: Mapped[str | None] = mapped_column(String(10))  # FT, NS, LIVE...

    @classmethod
    def index_columns(cls, document: dict[str, Any]) -> dict[str, Any]:
        return {
            "tournament_id": document.get("tournament_id"),
            "match_date": parse_provider_datetime(document.get("date")),
            "status": (document.get("status") or {}).get("short"),
        }
