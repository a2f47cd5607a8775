from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.errors import NotFound, ValidationFailed
from app.core.middleware import require_firm_id
from app.db.repositories import FirmRepository
from app.db.session import get_db, transaction
from services.sync import service
from services.sync.client import ReplicaClient
from services.sync.tables import model_for

router = APIRouter(tags=["sync"])


class SnapshotIn(BaseModel):
    table: str
    records: list[dict[str, Any]] = Field(default_factory=list)
    owner: str | None = None


class SyncRequest(BaseModel):
    firm_id: str | None = None
    owner: str | None = None
    cloud_url: str | None = None


def _replica_client(request: Request, cloud_url: str | None) -> ReplicaClient:
    settings = request.app.state.settings
    base_url = cloud_url or settings.cloud_url
    if not base_url:
        raise ValidationFailed("cloud_url and firm_id are required.")
    return ReplicaClient(
        base_url,
        timeout=settings.sync_timeout_seconds,
        transport=getattr(request.app.state, "replica_transport", None),
    )


def _run(request: Request, payload: SyncRequest, db: Session, direction: str) -> dict:
    if not payload.firm_id:
        raise ValidationFailed("cloud_url and firm_id are required.")
    firm = FirmRepository(db).get(payload.firm_id)
    if firm is None:
        raise NotFound("Firm not found")
    owner = payload.owner or firm.owner

    with _replica_client(request, payload.cloud_url) as client:
        if direction == "push":
            results = service.push_tables(db, client, firm.id, owner)
        else:
            results = service.pull_tables(db, client, firm.id, owner)
    return {"status": "completed", "firm_id": firm.id, "results": [r.as_dict() for r in results]}


# ---- Local side: on-demand exchange with the replica ----
@router.post("/sync/to-cloud")
def sync_to_cloud(payload: SyncRequest, request: Request, db: Session = Depends(get_db)):
    return _run(request, payload, db, "push")


@router.post("/sync/to-local")
def sync_to_local(payload: SyncRequest, request: Request, db: Session = Depends(get_db)):
    return _run(request, payload, db, "pull")


@router.get("/sync/outbox")
def list_outbox(db: Session = Depends(get_db), firm_id: str = Depends(require_firm_id)):
    return service.outbox_entries(db, firm_id)


@router.post("/sync/pull")
def export_firm(firm_id: str, db: Session = Depends(get_db)):
    return service.export_firm(db, firm_id)


@router.post("/sync/push")
def import_firm(firm_id: str, data: dict[str, Any] = Body(...), db: Session = Depends(get_db)):
    results = service.import_firm(db, firm_id, data)
    return {"success": True, "message": "Data pushed successfully", "results": [r.as_dict() for r in results]}


# ---- Replica side: endpoints other installations push to and fetch from ----
@router.post("/sync/")
def receive_snapshot(payload: SnapshotIn, db: Session = Depends(get_db)):
    model_for(payload.table)
    with transaction(db):
        created, updated = service.upsert_records(db, payload.table, payload.records)
    return {"created": created, "updated": updated}


@router.get("/fetch/")
def fetch_records(table: str, owner: str | None = None, firm_id: str | None = None, db: Session = Depends(get_db)):
    model_for(table)
    return {"records": service.serve_records(db, table, owner, firm_id)}
