from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from app.db.models.common import utcnow
from app.db.repositories import FirmRepository
from app.events.outbox import SyncOutboxEntry

logger = logging.getLogger("billing.outbox")


def enqueue_sync(
    db: Session,
    firm_id: str,
    table: str,
    *,
    available_at: datetime | None = None,
) -> SyncOutboxEntry | None:
    """Queue a replica push of ``table`` (and its related tables) for a firm.

    Written in the caller's transaction, so the entry only exists if the
    mutation that produced it commits. Firms without sync enabled get nothing.
    """
    firm = FirmRepository(db).get(firm_id)
    if firm is None or not firm.sync_enabled:
        return None

    entry = SyncOutboxEntry(
        firm_id=firm_id,
        table_name=table,
        available_at=available_at or utcnow(),
        delivered=False,
        attempt_count=0,
    )
    db.add(entry)
    db.flush()
    logger.debug("queued sync of %s for firm %s", table, firm_id)
    return entry
