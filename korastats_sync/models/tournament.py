from typing import Any

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from korastats_sync.database import Base
from korastats_sync.models.document import DocumentMixin


class Tournament(DocumentMixin, Base):
    __tablename__ = "tournaments"

    name: Mapped[str | None] = mapped_column(String(255))
    season: Mapped[str | None] = mapped_column(String(50), index=True)

    @classmethod
    def index_columns(cls, document: dict[str, Any]) -> dict[str, Any]:
        return {"name": document.get("name"), "season": document.get("season")}
