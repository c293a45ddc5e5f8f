# sagleads/utils/export.py

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd
from dateutil import parser as dateparse
from loguru import logger

from sagleads.utils.schema import Lead

EXPORT_COLUMNS = [
    "Name",
    "Address",
    "Type",
    "Contact Person",
    "Phone",
    "Email",
    "Website",
    "Rating",
    "Distance (mi)",
    "Contacted",
    "Contact Date",
    "Contact Notes",
    "Notes",
]


def _short_date(value: Optional[str]) -> str:
    if not value:
        return ""
    try:
        d = dateparse.parse(value)
    except (ValueError, OverflowError):
        return ""
    return f"{d.month}/{d.day}/{d.year}"


def _fmt_number(value) -> str:
    return "" if value is None else str(value)


def leads_to_frame(leads: Iterable[Lead]) -> pd.DataFrame:
    rows = [
        {
            "Name": lead.name,
            "Address": lead.address,
            "Type": lead.type,
            "Contact Person": lead.contact_person or "",
            "Phone": lead.phone or "",
            "Email": lead.email or "",
            "Website": lead.website or "",
            "Rating": _fmt_number(lead.rating),
            "Distance (mi)": _fmt_number(lead.distance),
            "Contacted": "Yes" if lead.contacted else "No",
            "Contact Date": _short_date(lead.contacted_date),
            "Contact Notes": lead.contact_notes or "",
            "Notes": lead.notes or "",
        }
        for lead in leads
    ]
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def default_export_name(today: Optional[date] = None) -> str:
    return f"sag-leads-{(today or date.today()).isoformat()}.csv"


def export_leads(leads: Iterable[Lead], path: str | Path, excel_engine: str = "openpyxl") -> Path:
    """
    Write leads as a spreadsheet:
      - .xlsx -> single "Leads" sheet
      - anything else -> CSV (quoted where needed)
    """
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    df = leads_to_frame(leads)
    if out.suffix.lower() == ".xlsx":
        with pd.ExcelWriter(out, engine=excel_engine) as xw:
            df.to_excel(xw, sheet_name="Leads", index=False)
    else:
        df.to_csv(out, index=False)
    logger.info(f"Exported {len(df)} lead(s) to {out}")
    return out
