# sagleads/processors/contract_reader.py
from __future__ import annotations
import csv
import json
import math
import re
from datetime import date, datetime, time
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd
from loguru import logger

from sagleads.utils.errors import ConfigError, ContractParseError
from sagleads.utils.schema import CONTRACT_FIELDS, ContractRecord


Cell = Tuple[int, int]
CellTemplate = Dict[str, Tuple[Cell, ...]]

# ---- Cell layout of the service contract workbook (0-based row, column) ----
# Labels sit one column to the left of each value.
CONTRACT_TEMPLATE: CellTemplate = {
    "customer_name":     ((22, 1),),
    "customer_address1": ((23, 1),),
    "customer_address2": ((24, 1),),
    "billing_address1":  ((23, 5),),
    "billing_address2":  ((24, 5),),
    "contact_email":     ((23, 9),),
    "contact_mobile":    ((24, 9),),
    "contact_phone":     ((25, 9),),
    "site_name":         ((39, 3),),
    "site_address1":     ((40, 3),),
    "site_address2":     ((41, 3),),
    "site_contact":      ((42, 3),),
    "effective_date":    ((29, 9), (29, 10)),
    "service_type":      ((32, 1),),
}

EXCEL_SUFFIXES = {".xlsx", ".xlsm", ".xls"}
QUOTES = "\"'"


# ---------- cell helpers ----------
def _stringify(val) -> str:
    """Render a raw cell value the way it reads in the sheet."""
    if val is None:
        return ""
    if isinstance(val, str):
        return val
    if pd.isna(val):
        return ""
    if isinstance(val, datetime):
        if val.time() == time(0):
            return val.date().isoformat()
        return val.isoformat(sep=" ")
    if isinstance(val, date):
        return val.isoformat()
    if isinstance(val, float) and math.isfinite(val) and val.is_integer():
        return str(int(val))
    return str(val)


def clean_value(val) -> str:
    """
    Normalize a cell value:
      - one pair of matching surrounding quotes is dropped
      - whitespace runs collapse to a single space
      - missing values become ""
    """
    s = _stringify(val).strip()
    if len(s) >= 2 and s[0] == s[-1] and s[0] in QUOTES:
        s = s[1:-1]
    return re.sub(r"\s+", " ", s).strip()


def _cell(df: pd.DataFrame, row: int, col: int) -> str:
    if row < 0 or col < 0 or row >= df.shape[0] or col >= df.shape[1]:
        return ""
    try:
        return clean_value(df.iat[row, col])
    except Exception:  # pragma: no cover
        return ""


def apply_template(df: pd.DataFrame, template: CellTemplate) -> ContractRecord:
    """Look up every field's candidate cells in order; the first non-empty one wins."""
    values: Dict[str, str] = {}
    for field, cells in template.items():
        values[field] = next((v for v in (_cell(df, r, c) for r, c in cells) if v), "")
    return ContractRecord(**values)


# ---------- template loading ----------
def load_template(path: str | Path) -> CellTemplate:
    """
    Read a cell layout from JSON, e.g.
      {"customer_name": [22, 1], "effective_date": [[29, 9], [29, 10]]}
    Fields missing from the file keep no cell (they extract as "").
    """
    p = Path(path)
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ConfigError(f"Cannot read template {p}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"Template {p} must be a JSON object")

    template: CellTemplate = {}
    for field, ref in raw.items():
        if field not in CONTRACT_FIELDS:
            raise ConfigError(f"Unknown contract field in template {p}: {field}")
        try:
            cells = [ref] if isinstance(ref, list) and ref and isinstance(ref[0], int) else ref
            template[field] = tuple((int(r), int(c)) for r, c in cells)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Bad cell reference for {field} in {p}: {ref}") from e
    return template


# ---------- file reading ----------
def _read_sheet(path: Path) -> pd.DataFrame:
    """First worksheet as a headerless grid; row/column 0 is cell A1."""
    if path.suffix.lower() == ".csv":
        with path.open("r", encoding="utf-8-sig", newline="") as f:
            return pd.DataFrame(list(csv.reader(f)))
    return pd.read_excel(path, sheet_name=0, header=None, dtype=object)


def parse_contract_file(path: str | Path, template: Optional[CellTemplate] = None) -> ContractRecord:
    p = Path(path)
    try:
        df = _read_sheet(p)
    except Exception as e:
        logger.error(f"Error parsing contract {p.name}: {e}")
        raise ContractParseError(p.name, str(e)) from e

    record = apply_template(df, template or CONTRACT_TEMPLATE)
    logger.debug(f"Parsed contract {p.name}: {record.customer_name or '<no customer name>'}")
    return record


def parse_contract_files(paths: Iterable[str | Path], template: Optional[CellTemplate] = None) -> List[ContractRecord]:
    """Parse files in order; the first unreadable file aborts the whole batch."""
    return [parse_contract_file(p, template) for p in paths]


def is_contract_file(path: str | Path) -> bool:
    return Path(path).suffix.lower() in EXCEL_SUFFIXES | {".csv"}
