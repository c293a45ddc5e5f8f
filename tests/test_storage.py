import json
import re

import pytest

from sagleads.utils.errors import StorageError
from sagleads.utils.schema import Lead, Location
from sagleads.utils.storage import Storage

RALEIGH = {"lat": 35.7796, "lng": -78.6382}


@pytest.fixture
def storage(tmp_path, ticking_clock):
    with Storage(str(tmp_path / "db" / "leads.db"), str(tmp_path / "logs" / "audit.jsonl"), clock=ticking_clock) as s:
        yield s


def _contract(**extra):
    return {
        "customer_name": "Oak Ridge HOA",
        "customer_address1": "100 Oak St",
        "location": RALEIGH,
        "imported_date": "2026-01-05T15:30:00+00:00",
        **extra,
    }


def test_create_lead_generates_manual_id(storage):
    lead_id = storage.create_lead({"name": "Oak Ridge HOA", "address": "100 Oak St", "location": RALEIGH, "type": "hoa"})
    assert re.fullmatch(r"manual-\d{13}-[a-z0-9]{9}", lead_id)

    lead = storage.get_lead(lead_id)
    assert lead.id == lead_id
    assert lead.is_manual is True
    assert lead.location == Location(**RALEIGH)
    assert lead.created_date
    assert lead.contacted is False


def test_create_lead_requires_location(storage):
    with pytest.raises(StorageError):
        storage.create_lead({"name": "No Location"})


def test_mark_contacted_and_uncontacted(storage):
    lead_id = storage.create_lead({"name": "Oak Ridge HOA", "location": RALEIGH, "email": "a@b.org"})
    lead = storage.get_lead(lead_id)

    updated = storage.mark_contacted(lead, "Imported from contract on 1/5/2026")
    assert updated.contacted is True
    assert updated.contacted_date
    assert updated.contact_notes == "Imported from contract on 1/5/2026"
    assert updated.email == "a@b.org"
    assert updated.created_date == lead.created_date

    again = storage.mark_contacted(storage.get_lead(lead_id))
    assert again.contact_notes == "Imported from contract on 1/5/2026"

    cleared = storage.mark_uncontacted(lead_id)
    assert cleared.contacted is False
    assert cleared.contacted_date is None


def test_mark_contacted_upserts_unknown_lead(storage):
    place = Lead(id="ChIJ-place-1", name="Lake Pool Club", location=RALEIGH, type="pool")
    storage.mark_contacted(place)
    stored = storage.get_lead("ChIJ-place-1")
    assert stored.contacted is True
    assert stored.contact_notes == ""


def test_not_interested_and_field_edits(storage):
    lead_id = storage.create_lead({"name": "Elm Court", "location": RALEIGH})
    lead = storage.mark_not_interested(storage.get_lead(lead_id), "Has a vendor")
    assert lead.not_interested is True
    assert lead.rejection_reason == "Has a vendor"
    assert lead.not_interested_date

    lead = storage.update_lead_data(lead_id, contact_person="Sam", phone="919-555-0100")
    assert (lead.contact_person, lead.phone) == ("Sam", "919-555-0100")
    assert lead.id == lead_id

    with pytest.raises(StorageError):
        storage.update_lead_data("manual-missing", phone="1")
    with pytest.raises(StorageError):
        storage.mark_uncontacted("manual-missing")


def test_contacted_leads_newest_first(storage):
    first = storage.create_lead({"name": "First", "location": RALEIGH})
    second = storage.create_lead({"name": "Second", "location": RALEIGH})
    storage.create_lead({"name": "Never", "location": RALEIGH})
    storage.mark_contacted(storage.get_lead(first))
    storage.mark_contacted(storage.get_lead(second))
    assert [lead.name for lead in storage.get_contacted_leads()] == ["Second", "First"]
    assert len(storage.list_leads()) == 3


def test_delete_lead(storage):
    lead_id = storage.create_lead({"name": "Gone", "location": RALEIGH})
    assert storage.delete_lead(lead_id) is True
    assert storage.get_lead(lead_id) is None
    assert storage.delete_lead(lead_id) is False


def test_contract_crud(storage):
    contract_id = storage.create_contract(_contract(linked_lead_id="manual-1"))
    assert re.fullmatch(r"contract-\d{13}-[a-z0-9]{9}", contract_id)

    contract = storage.get_contract(contract_id)
    assert contract.customer_name == "Oak Ridge HOA"
    assert contract.linked_lead_id == "manual-1"
    assert contract.billing_address1 == ""

    newer = storage.create_contract(_contract(customer_name="Elm Court", imported_date="2026-02-01T00:00:00+00:00"))
    assert [c.id for c in storage.list_contracts()] == [newer, contract_id]

    updated = storage.update_contract(contract_id, service_type="Pool")
    assert updated.service_type == "Pool"
    assert storage.get_contract(contract_id).service_type == "Pool"

    assert storage.delete_contract(contract_id) is True
    assert storage.get_contract(contract_id) is None
    with pytest.raises(StorageError):
        storage.update_contract(contract_id, service_type="Pool")


def test_writes_are_audited(storage):
    lead_id = storage.create_lead({"name": "Audited", "location": RALEIGH})
    storage.mark_contacted(storage.get_lead(lead_id), "hello")
    storage.create_contract(_contract())

    lines = [json.loads(line) for line in storage.audit_log.read_text(encoding="utf-8").splitlines()]
    assert [(e["type"], e["action"]) for e in lines] == [
        ("lead", "create"),
        ("lead", "contacted"),
        ("contract", "create"),
    ]
    assert lines[0]["data"]["location"] == RALEIGH


def test_data_survives_reopen(tmp_path):
    db, log = str(tmp_path / "leads.db"), str(tmp_path / "audit.jsonl")
    with Storage(db, log) as s:
        lead_id = s.create_lead({"name": "Persisted", "location": RALEIGH})
    with Storage(db, log) as s:
        assert s.get_lead(lead_id).name == "Persisted"
