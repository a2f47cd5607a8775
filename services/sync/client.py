from __future__ import annotations

import logging
from typing import Any

import httpx
from fastapi.encoders import jsonable_encoder

from app.core.errors import RemoteSyncError

logger = logging.getLogger("billing.sync")


class ReplicaClient:
    """HTTP client for the remote replica's ``/sync/`` and ``/fetch/`` endpoints."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not base_url:
            raise RemoteSyncError("Cloud URL is not configured")
        self.base_url = base_url.rstrip("/")
        self._http = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def push(self, table: str, records: list[dict[str, Any]], owner: str | None) -> dict[str, Any]:
        body = {"table": table, "records": jsonable_encoder(records), "owner": owner}
        resp = self._http.post("/sync/", json=body)
        resp.raise_for_status()
        return resp.json() if resp.content else {}

    def fetch(self, table: str, owner: str | None, firm_id: str | None = None) -> list[dict[str, Any]]:
        params = {"table": table}
        if owner:
            params["owner"] = owner
        if firm_id:
            params["firm_id"] = firm_id
        resp = self._http.get("/fetch/", params=params)
        resp.raise_for_status()
        return (resp.json() or {}).get("records") or []

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "ReplicaClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
