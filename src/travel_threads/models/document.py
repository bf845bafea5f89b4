"""SQLAlchemy model backing the SQL document store."""

from datetime import datetime

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from travel_threads.db.session import Base
from travel_threads.db.time import utcnow


class StoredDocument(Base):
    """One schemaless document, addressed by collection name and document id.

    The payload is kept as a JSON object; querying, ordering and field
    transforms are evaluated by the store adapter rather than in SQL.
    """

    __tablename__ = "document"

    collection: Mapped[str] = mapped_column(String(64), primary_key=True)
    doc_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )
