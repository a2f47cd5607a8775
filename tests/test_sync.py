import json
from datetime import date, timedelta
from decimal import Decimal

import httpx
import pytest

from app.db.models.common import utcnow
from app.db.models.inventory import Item
from app.events.bus import enqueue_sync
from app.events.outbox import SyncOutboxEntry
from services.documents import service as documents
from services.documents.schemas import DocumentIn
from services.sync.client import ReplicaClient
from services.sync.service import deliver_pending, pull_tables, push_tables, upsert_records
from services.sync.tables import SYNC_TABLES, related_tables

CLOUD = "http://replica.test"


def _pushing_replica(calls, fail_tables=()):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/sync/"
        body = json.loads(request.content)
        calls.append(body)
        if body["table"] in fail_tables:
            return httpx.Response(500, json={"error": "replica down"})
        return httpx.Response(200, json={"created": len(body["records"]), "updated": 0})

    return httpx.MockTransport(handler)


def _serving_replica(records_by_table, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/fetch/"
        if seen is not None:
            seen.append(dict(request.url.params))
        return httpx.Response(200, json={"records": records_by_table.get(request.url.params["table"], [])})

    return httpx.MockTransport(handler)


@pytest.fixture
def sale_doc(session, firm, make_item, make_party, document_payload):
    item = make_item()
    party = make_party()
    payload = DocumentIn(**document_payload(
        party_id=party.id,
        items=[{"item_id": item.id, "primary_quantity": "2"}],
    ))
    return documents.create_document(session, firm.id, payload)


class TestTables:
    def test_closures(self):
        assert related_tables("documents")[:5] == (
            "documents",
            "document_items",
            "document_charges",
            "document_transportation",
            "document_relationships",
        )
        assert set(related_tables("payments")) == {"payments", "bank_transactions", "bank_accounts", "parties", "items"}
        assert related_tables("parties") == ("parties", "party_additional_fields")
        assert related_tables("units") == ("units",)

    def test_order_starts_with_firms(self):
        assert SYNC_TABLES[0] == "firms"
        assert SYNC_TABLES.index("items") < SYNC_TABLES.index("document_items")


class TestPush:
    def test_empty_tables_are_skipped_not_sent(self, session, firm, sale_doc):
        calls = []
        with ReplicaClient(CLOUD, transport=_pushing_replica(calls)) as client:
            results = {r.table: r for r in push_tables(session, client, firm.id, firm.owner)}

        assert results["categories"].status == "skipped"
        assert results["categories"].reason == "no records to sync"
        assert results["documents"].status == "success"
        assert results["documents"].created == 1
        sent = [c["table"] for c in calls]
        assert sent == ["firms", "items", "parties", "documents", "document_items"]
        assert all(c["owner"] == "owner-1" for c in calls)

    def test_records_are_json_ready(self, session, firm, sale_doc):
        calls = []
        with ReplicaClient(CLOUD, transport=_pushing_replica(calls)) as client:
            push_tables(session, client, firm.id, firm.owner, ["documents"])
        [record] = calls[0]["records"]
        assert record["document_date"] == "2024-04-01"
        assert record["total"] == 1000

    def test_failed_table_does_not_stop_the_rest(self, session, firm, sale_doc):
        calls = []
        transport = _pushing_replica(calls, fail_tables={"items"})
        with ReplicaClient(CLOUD, transport=transport) as client:
            results = {r.table: r for r in push_tables(session, client, firm.id, firm.owner)}

        assert results["items"].status == "failed"
        assert "500" in results["items"].error
        assert results["documents"].status == "success"
        assert results["items"].as_dict().keys() == {"table", "status", "error"}


class TestPull:
    def test_upserts_by_id(self, session, firm, make_item):
        item = make_item(name="Widget")
        remote = {
            "items": [
                {
                    "id": item.id,
                    "firm_id": firm.id,
                    "name": "Widget v2",
                    "primary_quantity": 12.5,
                    "opening_stock_date": "2024-01-01",
                    "updated_at": "2024-06-01T10:00:00Z",
                    "not_a_column": "ignored",
                },
                {"id": "remote-item", "firm_id": firm.id, "name": "Remote only", "primary_quantity": "3"},
            ]
        }
        seen = []
        with ReplicaClient(CLOUD, transport=_serving_replica(remote, seen)) as client:
            results = {r.table: r for r in pull_tables(session, client, firm.id, firm.owner)}

        assert (results["items"].created, results["items"].updated) == (1, 1)
        assert results["units"].status == "skipped"
        assert results["units"].reason == "no records fetched"

        session.refresh(item)
        assert item.name == "Widget v2"
        assert item.primary_quantity == Decimal("12.5")
        assert item.opening_stock_date == date(2024, 1, 1)
        assert session.get(Item, "remote-item").name == "Remote only"

        firms_query = next(p for p in seen if p["table"] == "firms")
        items_query = next(p for p in seen if p["table"] == "items")
        assert "firm_id" not in firms_query
        assert items_query == {"table": "items", "owner": "owner-1", "firm_id": firm.id}

    def test_upsert_is_idempotent(self, session, firm):
        records = [{"id": "u1", "firm_id": firm.id, "fullname": "Box", "shortname": "BOX"}]
        assert upsert_records(session, "units", records) == (1, 0)
        assert upsert_records(session, "units", records) == (0, 1)

    def test_transport_error_is_a_failed_table(self, session, firm):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        with ReplicaClient(CLOUD, transport=httpx.MockTransport(handler)) as client:
            results = pull_tables(session, client, firm.id, firm.owner, ["items", "units"])
        assert [r.status for r in results] == ["failed", "failed"]


class TestOutbox:
    def test_only_sync_enabled_firms_queue(self, session, firm):
        assert enqueue_sync(session, firm.id, "documents") is None
        firm.sync_enabled = True
        assert enqueue_sync(session, firm.id, "documents") is not None
        assert enqueue_sync(session, "ghost", "documents") is None

    def test_delivery_pushes_the_closure(self, session, firm, sale_doc):
        firm.sync_enabled = True
        entry = enqueue_sync(session, firm.id, "documents")
        session.commit()

        calls = []
        with ReplicaClient(CLOUD, transport=_pushing_replica(calls)) as client:
            assert deliver_pending(session, client) == 1

        assert entry.delivered
        assert entry.delivered_at is not None
        assert [c["table"] for c in calls] == ["documents", "document_items", "parties", "items"]

    def test_duplicate_entries_share_one_push(self, session, firm, sale_doc):
        firm.sync_enabled = True
        enqueue_sync(session, firm.id, "parties")
        enqueue_sync(session, firm.id, "parties")
        session.commit()

        calls = []
        with ReplicaClient(CLOUD, transport=_pushing_replica(calls)) as client:
            assert deliver_pending(session, client) == 2
        assert [c["table"] for c in calls] == ["parties"]

    def test_failure_backs_off_then_parks(self, session, firm, sale_doc):
        firm.sync_enabled = True
        entry = enqueue_sync(session, firm.id, "documents")
        session.commit()

        transport = _pushing_replica([], fail_tables={"documents"})
        with ReplicaClient(CLOUD, transport=transport) as client:
            now = utcnow()
            assert deliver_pending(session, client, max_attempts=3, now=now) == 0
            assert entry.attempt_count == 1
            assert "documents" in entry.last_error
            assert not entry.failed

            # not due again until the backoff has passed
            assert deliver_pending(session, client, max_attempts=3, now=now) == 0
            assert entry.attempt_count == 1

            for hours in (1, 2):
                deliver_pending(session, client, max_attempts=3, now=now + timedelta(hours=hours))

        assert entry.attempt_count == 3
        assert entry.failed
        assert not entry.delivered
        assert session.query(SyncOutboxEntry).filter(SyncOutboxEntry.failed == True).count() == 1  # noqa: E712


class TestDispatcher:
    def test_batch_runs_in_its_own_session(self, database, session, firm, sale_doc):
        from app.events.dispatcher import dispatch_batch

        firm.sync_enabled = True
        entry = enqueue_sync(session, firm.id, "documents")
        session.commit()

        calls = []
        with ReplicaClient(CLOUD, transport=_pushing_replica(calls)) as client:
            assert dispatch_batch(database, client, max_attempts=3) == 1
            assert dispatch_batch(database, client, max_attempts=3) == 0

        session.refresh(entry)
        assert entry.delivered
        assert calls[0]["table"] == "documents"
