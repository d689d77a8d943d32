from sqlalchemy import String, Integer, DateTime, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base
from fermion.constants import TBL_AUDIT_ENTRIES, TBL_INGEST_METADATA


class AuditEntry(Base):
    """One captured HTTP request. `payload` holds the raw (unmasked) body text."""

    __tablename__ = TBL_AUDIT_ENTRIES
    entry_id: Mapped[str] = mapped_column(String, primary_key=True)
    user_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    user_name: Mapped[str | None] = mapped_column(String, nullable=True)
    method: Mapped[str | None] = mapped_column(String(10), nullable=True)
    path: Mapped[str | None] = mapped_column(String, nullable=True)
    status_code: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    ip_address: Mapped[str | None] = mapped_column(String, nullable=True)
    payload: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped["DateTime | None"] = mapped_column(DateTime(timezone=True), server_default=func.now())


class IngestMetadata(Base):
    __tablename__ = TBL_INGEST_METADATA
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    source_path: Mapped[str] = mapped_column(String, nullable=False)
    total_rows: Mapped[int] = mapped_column(Integer, nullable=False)
    loaded_rows: Mapped[int] = mapped_column(Integer, nullable=False)
    file_hash: Mapped[str] = mapped_column(String, nullable=False)  # SHA256
    created_at: Mapped["DateTime"] = mapped_column(DateTime(timezone=True), server_default=func.now())
