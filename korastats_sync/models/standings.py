from korastats_sync.database import Base
from korastats_sync.models.document import DocumentMixin


class Standings(DocumentMixin, Base):
    """Standings keyed by tournament id, one entry per season in ``document["seasons"]``."""

    __tablename__ = "standings"
