from typing import Any

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from korastats_sync.database import Base
from korastats_sync.models.document import DocumentMixin


class Player(DocumentMixin, Base):
    __tablename__ = "players"

    name: Mapped[str | None] = mapped_column(String(255), index=True)
    nationality: Mapped[str | None] = mapped_column(String(100))

    @classmethod
    def index_columns(cls, document: dict[str, Any]) -> dict[str, Any]:
        return {"name": document.get("name"), "nationality": document.get("nationality")}
