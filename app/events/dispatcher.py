from __future__ import annotations

import asyncio
import logging

from app.core.settings import Settings
from app.db.session import Database
from services.sync.client import ReplicaClient
from services.sync.service import deliver_pending

logger = logging.getLogger("billing.outbox")


def dispatch_batch(database: Database, client: ReplicaClient, *, max_attempts: int) -> int:
    with database.session() as db:
        return deliver_pending(db, client, max_attempts=max_attempts)


async def run_dispatcher_forever(database: Database, settings: Settings, *, transport=None) -> None:
    """Background worker that pushes queued table changes to the remote replica.

    Delivery runs in a worker thread so the blocking ORM and HTTP calls stay
    off the event loop.
    """
    client = ReplicaClient(settings.cloud_url, timeout=settings.sync_timeout_seconds, transport=transport)
    logger.info("outbox dispatcher started for %s", settings.cloud_url)
    try:
        while True:
            try:
                delivered = await asyncio.to_thread(
                    dispatch_batch, database, client, max_attempts=settings.sync_max_attempts
                )
                if delivered:
                    logger.info("delivered %d outbox entries", delivered)
            except Exception:
                logger.exception("outbox dispatch failed")
            await asyncio.sleep(settings.sync_poll_interval_seconds)
    finally:
        client.close()
