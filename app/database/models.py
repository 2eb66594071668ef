"""SQLAlchemy models for the document store."""

from datetime import datetime, timezone

from sqlalchemy import JSON, TIMESTAMP, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests).
DocumentJSON = JSON().with_variant(JSONB(), "postgresql")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DocumentRecord(Base):
    """One schema-less document of an entity collection.

    ``key`` holds the document's natural id (``id_cliente``, ``nro_poliza``...)
    already coerced to its string form, so key lookups behave the same
    whether the source stored the id as a number or as text.
    """

    __tablename__ = "documents"
    __table_args__ = (
        UniqueConstraint("collection", "key", name="uq_documents_collection_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    collection: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    key: Mapped[str] = mapped_column(String(128), nullable=False)
    data: Mapped[dict] = mapped_column(DocumentJSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )
