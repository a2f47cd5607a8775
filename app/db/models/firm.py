from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.db.models.common import HasId, HasTimestamps, utcnow


class Firm(Base, HasId, HasTimestamps):
    """Tenant registry. Every ledger row carries the id of one firm."""

    __tablename__ = "firms"

    name: Mapped[str] = mapped_column(String(256), unique=True, nullable=False)
    country: Mapped[str] = mapped_column(String(64), default="", nullable=False)
    phone: Mapped[str] = mapped_column(String(32), default="", nullable=False)
    owner: Mapped[str] = mapped_column(String(64), default="", nullable=False, index=True)
    gst_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    owner_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    business_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)

    # When set, local mutations are queued for the remote replica.
    sync_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class FirmUserShare(Base, HasId):
    """Another user's access to a firm, by phone number and role."""

    __tablename__ = "firm_user_shares"

    firm_id: Mapped[str] = mapped_column(String(36), ForeignKey("firms.id", ondelete="CASCADE"), nullable=False, index=True)
    user_number: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(32), nullable=False)
    shared_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
