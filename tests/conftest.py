import csv
from datetime import datetime, timedelta, timezone

import pytest
from openpyxl import Workbook

from sagleads.processors.contract_reader import CONTRACT_TEMPLATE
from sagleads.utils.errors import GeocodingError
from sagleads.utils.schema import ContractRecord, Location


class FakeGeocoder:
    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.calls = []

    def geocode(self, address):
        self.calls.append(address)
        if not address:
            raise GeocodingError(address, "address is empty")
        if address in self.fail_on:
            raise GeocodingError(address, "status ZERO_RESULTS")
        return Location(lat=35.7796, lng=-78.6382)


class FakeStorage:
    """
    In-memory gateway. Each fail_* switch is an error message; `fail_for`
    limits the failures to those customer names (all records when empty).
    """

    def __init__(self, fail_create_lead=None, fail_mark_contacted=None, fail_create_contract=None, fail_for=()):
        self.fail_create_lead = fail_create_lead
        self.fail_mark_contacted = fail_mark_contacted
        self.fail_create_contract = fail_create_contract
        self.fail_for = set(fail_for)
        self.leads = {}
        self.contacted = []
        self.contracts = []

    def _maybe_fail(self, message, name):
        if message and (not self.fail_for or name in self.fail_for):
            raise RuntimeError(message)

    def create_lead(self, lead):
        self._maybe_fail(self.fail_create_lead, lead.get("name"))
        lead_id = f"manual-{len(self.leads) + 1}"
        self.leads[lead_id] = lead
        return lead_id

    def mark_contacted(self, lead, notes=None):
        self._maybe_fail(self.fail_mark_contacted, lead.name)
        self.contacted.append((lead, notes))

    def create_contract(self, contract):
        self._maybe_fail(self.fail_create_contract, contract.customer_name)
        self.contracts.append(contract)
        return f"contract-{len(self.contracts)}"


class TickingClock:
    """Each call is one second after the previous one."""

    def __init__(self, start=datetime(2026, 1, 5, 15, 30, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def fake_geocoder():
    return FakeGeocoder


@pytest.fixture
def fake_storage():
    return FakeStorage


@pytest.fixture
def ticking_clock():
    return TickingClock()


@pytest.fixture
def oak_ridge():
    return {
        "customer_name": "Oak Ridge HOA",
        "customer_address1": "100 Oak St",
        "customer_address2": "Raleigh, NC 27601",
        "contact_email": "board@oakridge.org",
        "contact_mobile": "919-555-0101",
        "site_contact": "Pat Jones",
        "effective_date": "01/15/2024",
        "service_type": "HOA management",
    }


@pytest.fixture
def make_record():
    def _make(**fields):
        return ContractRecord(**fields)
    return _make


@pytest.fixture
def write_contract(tmp_path):
    """
    Write a contract workbook laid out like the service agreement template.
    `values` maps field name -> value at the field's first template cell;
    `cells` places raw values at explicit (row, column) positions.
    """
    def _write(name, values, cells=None):
        grid = [["" for _ in range(12)] for _ in range(45)]
        grid[0][0] = "SERVICE AGREEMENT"
        grid[22][0] = "Customer"
        for field, val in values.items():
            r, c = CONTRACT_TEMPLATE[field][0]
            grid[r][c] = val
        for (r, c), val in (cells or {}).items():
            grid[r][c] = val

        path = tmp_path / name
        if path.suffix == ".csv":
            with path.open("w", encoding="utf-8", newline="") as f:
                csv.writer(f).writerows(grid)
        else:
            wb = Workbook()
            ws = wb.active
            for r, row in enumerate(grid):
                for c, val in enumerate(row):
                    if val != "":
                        ws.cell(row=r + 1, column=c + 1, value=val)
            wb.save(path)
        return path
    return _write
