from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.db.models.common import HasCreatedAt, HasId, utcnow


class SyncOutboxEntry(Base, HasId, HasCreatedAt):
    """Transactional outbox for replica pushes.

    A row is written in the same transaction as the local mutation that
    changed ``table_name``. The dispatcher (see app.events.dispatcher) pushes
    the table and its related tables to the remote replica and retries with
    backoff until it succeeds or runs out of attempts.
    """

    __tablename__ = "sync_outbox"

    firm_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    table_name: Mapped[str] = mapped_column(String(64), nullable=False)

    available_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    attempt_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    delivered: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # Parked after too many attempts; kept for inspection.
    failed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


Index("ix_sync_outbox_delivery", SyncOutboxEntry.delivered, SyncOutboxEntry.failed, SyncOutboxEntry.available_at)
