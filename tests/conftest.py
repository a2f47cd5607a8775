from __future__ import annotations

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from app.core.settings import Settings
from app.db.models.banking import BankAccount
from app.db.models.firm import Firm
from app.db.models.inventory import Item
from app.db.models.party import Party
from app.db.session import Database
from main import create_app

MEMORY_URL = "sqlite+pysqlite:///:memory:"


@pytest.fixture
def database():
    db = Database(MEMORY_URL)
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def session(database):
    s = database.session()
    yield s
    s.close()


@pytest.fixture
def settings():
    return Settings(database_url=MEMORY_URL, cloud_url="")


@pytest.fixture
def firm(session):
    row = Firm(name="Acme Traders", owner="owner-1", phone="9000000000", country="IN")
    session.add(row)
    session.commit()
    return row


@pytest.fixture
def make_item(session, firm):
    def _make(**overrides) -> Item:
        values = dict(
            firm_id=firm.id,
            name="Widget",
            primary_unit_id="unit-box",
            primary_quantity=Decimal("50"),
            secondary_quantity=Decimal("0"),
        )
        values.update(overrides)
        row = Item(**values)
        session.add(row)
        session.commit()
        return row

    return _make


@pytest.fixture
def make_party(session, firm):
    def _make(balance="0", balance_type="to_pay", **overrides) -> Party:
        values = dict(
            firm_id=firm.id,
            name="Ravi Stores",
            current_balance=Decimal(balance),
            current_balance_type=balance_type,
        )
        values.update(overrides)
        row = Party(**values)
        session.add(row)
        session.commit()
        return row

    return _make


@pytest.fixture
def make_bank(session, firm):
    def _make(balance="1000", **overrides) -> BankAccount:
        values = dict(
            firm_id=firm.id,
            display_name="Main current account",
            bank_name="State Bank",
            opening_balance=Decimal(balance),
            current_balance=Decimal(balance),
        )
        values.update(overrides)
        row = BankAccount(**values)
        session.add(row)
        session.commit()
        return row

    return _make


@pytest.fixture
def document_payload():
    def _make(**overrides) -> dict:
        payload = {
            "document_type": "sale_invoice",
            "document_number": "INV-001",
            "document_date": "2024-04-01",
            "party_name": "Ravi Stores",
            "transaction_type": "credit",
            "payment_type": "cash",
            "total": "1000",
            "paid_amount": "400",
            "items": [],
        }
        payload.update(overrides)
        return payload

    return _make


@pytest.fixture
def client(database, settings):
    app = create_app(database=database, settings=settings)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def headers(firm):
    return {"X-Firm-Id": firm.id}
