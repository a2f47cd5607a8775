"""Party master: CRUD with opening balance handling and additional fields.

The running balance is owned by the party ledger once a party exists. Editing
the opening balance moves the running position by the signed difference
between the old and new opening positions, so activity recorded since is kept.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from app.core.errors import NotFound, ValidationFailed
from app.db.models.party import Party
from app.db.repositories import PartyRepository
from app.db.serialize import row_to_dict
from app.db.session import transaction
from app.events.bus import enqueue_sync
from services.ledger.party_balance import TO_RECEIVE, shift_position
from services.ledger.units import to_decimal
from services.parties.schemas import PartyIn, PartyUpdate

logger = logging.getLogger("billing.parties")

DUPLICATE_NAME = "Party name must be unique (case-insensitive)"


def signed_opening(amount: Any, balance_type: str | None) -> Decimal:
    amount = to_decimal(amount)
    return amount if balance_type == TO_RECEIVE else -amount


def _party_out(parties: PartyRepository, party: Party) -> dict[str, Any]:
    out = row_to_dict(party)
    out["additional_fields"] = [
        {"key": f.field_key, "value": f.field_value} for f in parties.additional_fields(party.id)
    ]
    return out


def _get_or_404(parties: PartyRepository, party_id: str) -> Party:
    party = parties.get(party_id)
    if party is None:
        raise NotFound("Party not found")
    return party


def list_parties(
    db: Session,
    firm_id: str,
    *,
    group_id: str | None = None,
    gst_type: str | None = None,
    search: str | None = None,
) -> list[dict[str, Any]]:
    parties = PartyRepository(db, firm_id)
    rows = parties.search(group_id=group_id, gst_type=gst_type, search=search)
    return [_party_out(parties, p) for p in rows]


def get_party(db: Session, firm_id: str, party_id: str) -> dict[str, Any]:
    parties = PartyRepository(db, firm_id)
    return _party_out(parties, _get_or_404(parties, party_id))


def create_party(db: Session, firm_id: str, payload: PartyIn) -> dict[str, Any]:
    fields = payload.model_dump(exclude={"additional_fields"})
    fields["name"] = fields["name"].strip()
    parties = PartyRepository(db, firm_id)

    with transaction(db):
        if parties.name_taken(fields["name"]):
            raise ValidationFailed(DUPLICATE_NAME)
        party = parties.add(Party(
            **fields,
            current_balance=fields["opening_balance"],
            current_balance_type=fields["opening_balance_type"],
        ))
        parties.replace_additional_fields(party.id, [(f.key, f.value) for f in payload.additional_fields])
        enqueue_sync(db, firm_id, "parties")

    logger.info("created party %s for firm %s", party.id, firm_id)
    return _party_out(parties, party)


def update_party(db: Session, firm_id: str, party_id: str, payload: PartyUpdate) -> dict[str, Any]:
    changes = payload.model_dump(exclude_unset=True, exclude_none=True, exclude={"additional_fields"})
    parties = PartyRepository(db, firm_id)

    with transaction(db):
        party = _get_or_404(parties, party_id)

        name = changes.pop("name", "").strip()
        if name and name != party.name:
            if parties.name_taken(name, exclude_id=party.id):
                raise ValidationFailed(DUPLICATE_NAME)
            # Documents keep a copy of the party name
            if parties.in_documents(party.id):
                raise ValidationFailed("Cannot update party name. The party is used in one or more documents.")
            changes["name"] = name

        if "opening_balance" in changes or "opening_balance_type" in changes:
            old = signed_opening(party.opening_balance, party.opening_balance_type)
            new = signed_opening(
                changes.get("opening_balance", party.opening_balance),
                changes.get("opening_balance_type", party.opening_balance_type),
            )
            if new != old:
                balance, balance_type = shift_position(party.current_balance, party.current_balance_type, new - old)
                parties.save_balance(party, balance, balance_type)

        for key, value in changes.items():
            setattr(party, key, value)
        db.flush()
        if payload.additional_fields is not None:
            parties.replace_additional_fields(party.id, [(f.key, f.value) for f in payload.additional_fields])
        enqueue_sync(db, firm_id, "parties")

    logger.info("updated party %s for firm %s", party.id, firm_id)
    return _party_out(parties, party)


def delete_party(db: Session, firm_id: str, party_id: str) -> None:
    parties = PartyRepository(db, firm_id)
    with transaction(db):
        party = _get_or_404(parties, party_id)
        if parties.in_documents(party.id) or parties.in_payments(party.id):
            raise ValidationFailed(
                "Cannot delete party because it is referenced in one or more documents and payments"
            )
        parties.replace_additional_fields(party.id, [])
        parties.delete(party)
        enqueue_sync(db, firm_id, "parties")
    logger.info("deleted party %s for firm %s", party_id, firm_id)
