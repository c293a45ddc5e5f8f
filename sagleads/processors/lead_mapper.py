# sagleads/processors/lead_mapper.py
from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional, Sequence, Tuple

from dateutil import parser as dateparse
from loguru import logger

from sagleads.utils.config import DEFAULT_DATE_FORMATS
from sagleads.utils.schema import ContractRecord, LeadDraft, LeadType


UNKNOWN_CUSTOMER = "Unknown Customer"
# Fills the parts a partial date leaves out ("2024" -> Jan 1); never today.
DATE_DEFAULT = datetime(2000, 1, 1)

# ---- Precedence tables: first non-empty source wins ----
NAME_SOURCES = ("customer_name", "site_name")
PHONE_SOURCES = ("contact_mobile", "contact_phone")
EMAIL_SOURCES = ("contact_email",)
CONTACT_PERSON_SOURCES = ("site_contact",)

# (line 1, line 2); line 2 only counts when line 1 is present
ADDRESS_SOURCES = (
    ("customer_address1", "customer_address2"),
    ("billing_address1", "billing_address2"),
    ("site_address1", "site_address2"),
)

# Checked in order against the service type; a later match overrides an earlier one.
TYPE_RULES: Tuple[Tuple[str, LeadType], ...] = (
    ("hoa", "hoa"),
    ("neighborhood", "neighborhood"),
)
DEFAULT_TYPE: LeadType = "pool"


def _first(record: ContractRecord, fields: Sequence[str]) -> Optional[str]:
    for f in fields:
        val = getattr(record, f)
        if val:
            return val
    return None


def _address(record: ContractRecord) -> str:
    for line1, line2 in ADDRESS_SOURCES:
        first = getattr(record, line1)
        if first:
            second = getattr(record, line2)
            return f"{first}, {second}" if second else first
    return ""


def _lead_type(service_type: str) -> LeadType:
    lead_type = DEFAULT_TYPE
    lowered = (service_type or "").lower()
    for needle, candidate in TYPE_RULES:
        if needle in lowered:
            lead_type = candidate
    return lead_type


def parse_effective_date(
    value: str,
    date_formats: Sequence[str] = DEFAULT_DATE_FORMATS,
    dayfirst: bool = False,
) -> Optional[str]:
    """
    Turn a contract's effective date into a UTC midnight ISO timestamp.
    Explicit formats are tried first, then dateutil. Unparseable -> None.
    """
    if not value:
        return None

    parsed: Optional[datetime] = None
    for fmt in date_formats:
        try:
            parsed = datetime.strptime(value, fmt)
            break
        except ValueError:
            continue

    if parsed is None:
        try:
            parsed = dateparse.parse(value, dayfirst=dayfirst, default=DATE_DEFAULT)
        except (ValueError, OverflowError):
            logger.warning(f"Ignoring unparseable effective date: {value!r}")
            return None

    return datetime(parsed.year, parsed.month, parsed.day, tzinfo=timezone.utc).isoformat()


def contract_to_lead(
    record: ContractRecord,
    date_formats: Sequence[str] = DEFAULT_DATE_FORMATS,
    dayfirst: bool = False,
) -> LeadDraft:
    """Derive the lead for a contract. No id and no location yet; those come later."""
    draft = LeadDraft(
        name=_first(record, NAME_SOURCES) or UNKNOWN_CUSTOMER,
        address=_address(record),
        type=_lead_type(record.service_type),
        phone=_first(record, PHONE_SOURCES),
        email=_first(record, EMAIL_SOURCES),
        contact_person=_first(record, CONTACT_PERSON_SOURCES),
        notes=f"Service: {record.service_type}" if record.service_type else None,
        contacted_date=parse_effective_date(record.effective_date, date_formats, dayfirst),
    )
    logger.debug(f"Mapped contract to lead: name={draft.name!r} address={draft.address!r}")
    return draft
