from typing import Any

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from korastats_sync.database import Base
from korastats_sync.models.document import DocumentMixin


class Team(DocumentMixin, Base):
    __tablename__ = "teams"

    name: Mapped[str | None] = mapped_column(String(255), index=True)
    code: Mapped[str | None] = mapped_column(String(10))

    @classmethod
    def index_columns(cls, document: dict[str, Any]) -> dict[str, Any]:
        return {"name": document.get("name"), "code": document.get("code")}
