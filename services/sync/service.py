"""Whole-table snapshot exchange with the remote replica.

Push sends every row of a table for one firm; pull upserts whatever the
remote returns, keyed by row id. Deletes are never propagated in either
direction. Results are reported per table so one failing table does not
hide the others.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Iterable

from sqlalchemy import Boolean, Date, DateTime, Integer, Numeric, inspect
from sqlalchemy.orm import Session

from app.db.models.common import utcnow
from app.db.repositories import FirmRepository
from app.db.serialize import row_to_dict
from app.db.session import transaction
from app.events.outbox import SyncOutboxEntry
from services.sync.client import ReplicaClient
from services.sync.tables import SYNC_TABLES, model_for, related_tables

logger = logging.getLogger("billing.sync")

SUCCESS = "success"
SKIPPED = "skipped"
FAILED = "failed"


@dataclass
class TableResult:
    table: str
    status: str
    created: int | None = None
    updated: int | None = None
    reason: str | None = None
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


# ---- Local reads and writes ----
def read_table(db: Session, table: str, firm_id: str, *, all_firms: bool = True) -> list[dict[str, Any]]:
    model = model_for(table)
    q = db.query(model)
    if table == "firms":
        if not all_firms:
            q = q.filter(model.id == firm_id)
    else:
        q = q.filter(model.firm_id == firm_id)
    return [row_to_dict(r) for r in q.all()]


def _parse_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def coerce_value(column, value: Any) -> Any:
    """Turn a JSON value into what the column's Python type expects."""
    if value is None:
        return None
    if value == "" and isinstance(column.type, (DateTime, Date, Boolean, Numeric, Integer)):
        return None
    if isinstance(column.type, DateTime):
        return _parse_datetime(value) if isinstance(value, str) else value
    if isinstance(column.type, Date):
        if isinstance(value, datetime):
            return value.date()
        return _parse_datetime(value).date() if isinstance(value, str) else value
    if isinstance(column.type, Boolean):
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes")
        return bool(value)
    if isinstance(column.type, Numeric):
        return Decimal(str(value))
    if isinstance(column.type, Integer):
        return int(value)
    return value


def _row_values(model: type, record: dict[str, Any]) -> dict[str, Any]:
    columns = {c.key: c for c in inspect(model).columns}
    return {key: coerce_value(columns[key], value) for key, value in record.items() if key in columns}


def upsert_records(db: Session, table: str, records: Iterable[dict[str, Any]]) -> tuple[int, int]:
    """Insert or update rows by id; returns ``(created, updated)``.

    Keys that are not columns of the table are ignored. Rows without an id are
    skipped.
    """
    model = model_for(table)
    created = updated = 0
    for record in records:
        values = _row_values(model, record)
        row_id = values.get("id")
        if not row_id:
            logger.warning("skipping %s record without id", table)
            continue
        row = db.get(model, row_id)
        if row is None:
            db.add(model(**values))
            created += 1
        else:
            for key, value in values.items():
                setattr(row, key, value)
            updated += 1
    db.flush()
    return created, updated


def replace_firm_rows(db: Session, table: str, firm_id: str, records: Iterable[dict[str, Any]]) -> int:
    """Swap every row a firm has in ``table`` for ``records``."""
    model = model_for(table)
    db.query(model).filter(model.firm_id == firm_id).delete()
    count = 0
    for record in records:
        values = _row_values(model, record)
        values["firm_id"] = firm_id
        db.add(model(**values))
        count += 1
    db.flush()
    return count


# ---- Replica exchange ----
def push_tables(
    db: Session,
    client: ReplicaClient,
    firm_id: str,
    owner: str | None,
    tables: Iterable[str] = SYNC_TABLES,
    *,
    all_firms: bool = True,
) -> list[TableResult]:
    results: list[TableResult] = []
    for table in tables:
        try:
            records = read_table(db, table, firm_id, all_firms=all_firms)
            if not records:
                results.append(TableResult(table, SKIPPED, reason="no records to sync"))
                logger.info("[%s] skipped for firm %s: no records", table, firm_id)
                continue
            body = client.push(table, records, owner)
            results.append(TableResult(
                table,
                SUCCESS,
                created=int(body.get("created") or 0),
                updated=int(body.get("updated") or 0),
            ))
            logger.info("[%s] pushed %d records for firm %s", table, len(records), firm_id)
        except Exception as exc:
            results.append(TableResult(table, FAILED, error=str(exc) or exc.__class__.__name__))
            logger.error("[%s] push failed for firm %s: %s", table, firm_id, exc)
    return results


def pull_tables(
    db: Session,
    client: ReplicaClient,
    firm_id: str,
    owner: str | None,
    tables: Iterable[str] = SYNC_TABLES,
) -> list[TableResult]:
    results: list[TableResult] = []
    for table in tables:
        try:
            records = client.fetch(table, owner, None if table == "firms" else firm_id)
            if not records:
                results.append(TableResult(table, SKIPPED, reason="no records fetched"))
                logger.info("[%s] nothing to pull for firm %s", table, firm_id)
                continue
            with transaction(db):
                created, updated = upsert_records(db, table, records)
            results.append(TableResult(table, SUCCESS, created=created, updated=updated))
            logger.info("[%s] pulled %d records for firm %s", table, len(records), firm_id)
        except Exception as exc:
            results.append(TableResult(table, FAILED, error=str(exc) or exc.__class__.__name__))
            logger.error("[%s] pull failed for firm %s: %s", table, firm_id, exc)
    return results


# ---- Remote side ----
def serve_records(db: Session, table: str, owner: str | None, firm_id: str | None = None) -> list[dict[str, Any]]:
    """Rows a replica asks for: the owner's firms, or rows of those firms."""
    model = model_for(table)
    firms = FirmRepository(db)
    if table == "firms":
        rows = firms.by_owner(owner) if owner else []
        return [row_to_dict(r) for r in rows]

    firm_ids = [f.id for f in firms.by_owner(owner)] if owner else []
    if firm_id:
        firm_ids = [fid for fid in firm_ids if fid == firm_id] if owner else [firm_id]
    if not firm_ids:
        return []
    return [row_to_dict(r) for r in db.query(model).filter(model.firm_id.in_(firm_ids)).all()]


def export_firm(db: Session, firm_id: str) -> dict[str, list[dict[str, Any]]]:
    return {table: read_table(db, table, firm_id) for table in SYNC_TABLES if table != "firms"}


def import_firm(db: Session, firm_id: str, data: dict[str, Any]) -> list[TableResult]:
    """Replace a firm's rows table by table; a bad table does not stop the rest."""
    results: list[TableResult] = []
    for table, rows in data.items():
        if table == "firms" or table not in SYNC_TABLES or not isinstance(rows, list):
            continue
        try:
            with transaction(db):
                count = replace_firm_rows(db, table, firm_id, rows)
            results.append(TableResult(table, SUCCESS, created=count))
        except Exception as exc:
            results.append(TableResult(table, FAILED, error=str(exc) or exc.__class__.__name__))
            logger.warning("error importing %s for firm %s: %s", table, firm_id, exc)
    return results


# ---- Outbox delivery ----
def backoff_delay(attempt_count: int) -> timedelta:
    # Exponential, capped at 10 minutes.
    return timedelta(seconds=min(600, 2 ** min(attempt_count, 9)))


def pending_entries(db: Session, *, now: datetime | None = None, limit: int = 50) -> list[SyncOutboxEntry]:
    now = now or utcnow()
    return (
        db.query(SyncOutboxEntry)
        .filter(SyncOutboxEntry.delivered == False)  # noqa: E712
        .filter(SyncOutboxEntry.failed == False)  # noqa: E712
        .filter(SyncOutboxEntry.available_at <= now)
        .order_by(SyncOutboxEntry.created_at.asc())
        .limit(limit)
        .all()
    )


def deliver_pending(
    db: Session,
    client: ReplicaClient,
    *,
    max_attempts: int = 8,
    now: datetime | None = None,
    limit: int = 50,
) -> int:
    """Push the tables behind every due outbox entry; returns how many were delivered.

    Entries queued for the same firm and table share one push per batch.
    """
    now = now or utcnow()
    entries = pending_entries(db, now=now, limit=limit)
    if not entries:
        return 0

    firms = FirmRepository(db)
    pushed: dict[tuple[str, str], list[TableResult]] = {}
    delivered = 0
    for entry in entries:
        key = (entry.firm_id, entry.table_name)
        if key not in pushed:
            firm = firms.get(entry.firm_id)
            if firm is None:
                entry.failed = True
                entry.last_error = "Firm not found"
                logger.error("outbox entry %s parked: firm %s not found", entry.id, entry.firm_id)
                continue
            pushed[key] = push_tables(
                db, client, firm.id, firm.owner, related_tables(entry.table_name), all_firms=False
            )

        failures = [r for r in pushed[key] if r.status == FAILED]
        if not failures:
            entry.delivered = True
            entry.delivered_at = now
            entry.last_error = None
            delivered += 1
            continue

        entry.attempt_count = (entry.attempt_count or 0) + 1
        entry.last_error = "; ".join(f"{r.table}: {r.error}" for r in failures)
        if entry.attempt_count >= max_attempts:
            entry.failed = True
            logger.error("outbox entry %s parked after %d attempts: %s", entry.id, entry.attempt_count, entry.last_error)
        else:
            entry.available_at = now + backoff_delay(entry.attempt_count)
            logger.warning("outbox entry %s attempt %d failed: %s", entry.id, entry.attempt_count, entry.last_error)

    db.commit()
    return delivered


def outbox_entries(db: Session, firm_id: str) -> list[dict[str, Any]]:
    rows = (
        db.query(SyncOutboxEntry)
        .filter(SyncOutboxEntry.firm_id == firm_id, SyncOutboxEntry.delivered == False)  # noqa: E712
        .order_by(SyncOutboxEntry.created_at.asc())
        .all()
    )
    return [row_to_dict(r) for r in rows]
