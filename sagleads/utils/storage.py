# sagleads/utils/storage.py

from __future__ import annotations

import json
import random
import sqlite3
import string
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from loguru import logger
from pydantic import BaseModel, ValidationError

from sagleads.utils.errors import StorageError
from sagleads.utils.schema import Contract, Lead

LEADS = "leads"
CONTRACTS = "contracts"

ID_ALPHABET = string.ascii_lowercase + string.digits
ID_SUFFIX_LEN = 9

Clock = Callable[[], datetime]
Document = Union[BaseModel, Dict[str, Any]]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_dict(doc: Document) -> Dict[str, Any]:
    """Drop unset values, the way the lead/contract documents are stored."""
    if isinstance(doc, BaseModel):
        return doc.model_dump(exclude_none=True)
    return {k: v for k, v in doc.items() if v is not None}


class Storage:
    """
    Document store for leads and contracts:
      - one SQLite table holding JSON documents keyed by (collection, id)
      - every write is committed immediately; there are no multi-document transactions

    Also writes an audit log (JSON lines).
    """

    def __init__(
        self,
        db_path: str,
        audit_log: str,
        clock: Optional[Clock] = None,
    ) -> None:
        self.db_path = Path(db_path)
        self.audit_log = Path(audit_log)
        self._clock = clock or _utc_now
        self._ensure_files()
        try:
            self._conn = sqlite3.connect(str(self.db_path))
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS documents ("
                " collection TEXT NOT NULL,"
                " id TEXT NOT NULL,"
                " data TEXT NOT NULL,"
                " PRIMARY KEY (collection, id))"
            )
            self._conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open database {self.db_path}: {e}") from e

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "Storage":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # -------------------------------------------------------------------------------------
    # Public API — leads
    # -------------------------------------------------------------------------------------

    def create_lead(self, lead: Document) -> str:
        """
        Store a lead that has no external place id.
        Returns the generated id: manual-{epoch-ms}-{9 chars}.
        """
        now = self._now()
        lead_id = self._new_id("manual")
        data = _as_dict(lead)
        data.pop("id", None)
        data.update({"is_manual": True, "created_date": now, "last_updated": now})
        stored = self._put(LEADS, lead_id, self._validate_lead(lead_id, data))
        self.audit({"type": "lead", "action": "create", "id": lead_id, "data": stored})
        logger.info(f"Created lead {lead_id} ({data.get('name')})")
        return lead_id

    def get_lead(self, lead_id: str) -> Optional[Lead]:
        data = self._get(LEADS, lead_id)
        return None if data is None else self._validate_lead(lead_id, data)

    def list_leads(self) -> List[Lead]:
        return [self._validate_lead(i, d) for i, d in self._all(LEADS)]

    def get_contacted_leads(self) -> List[Lead]:
        """Contacted leads, most recently contacted first."""
        leads = [lead for lead in self.list_leads() if lead.contacted]
        return sorted(leads, key=lambda lead: lead.contacted_date or "", reverse=True)

    def update_lead_data(self, lead_id: str, **fields: Any) -> Lead:
        """Edit contact fields (contact person, email, phone, notes, ...) of an existing lead."""
        fields.pop("id", None)
        return self._merge_lead(lead_id, fields, action="update")

    def mark_contacted(self, lead: Lead, notes: Optional[str] = None) -> Lead:
        """Store the full lead and flag it contacted with a fresh timestamp."""
        data = _as_dict(lead)
        data.pop("id", None)
        data.update({
            "contacted": True,
            "contacted_date": self._now(),
            "contact_notes": notes or lead.contact_notes or "",
        })
        return self._merge_lead(lead.id, data, action="contacted", upsert=True)

    def mark_not_interested(self, lead: Lead, reason: Optional[str] = None) -> Lead:
        data = _as_dict(lead)
        data.pop("id", None)
        data.update({
            "not_interested": True,
            "not_interested_date": self._now(),
            "rejection_reason": reason or "",
        })
        return self._merge_lead(lead.id, data, action="not_interested", upsert=True)

    def mark_uncontacted(self, lead_id: str) -> Lead:
        return self._merge_lead(
            lead_id, {"contacted": False, "contacted_date": None}, action="uncontacted"
        )

    def delete_lead(self, lead_id: str) -> bool:
        deleted = self._delete(LEADS, lead_id)
        if deleted:
            self.audit({"type": "lead", "action": "delete", "id": lead_id})
        return deleted

    # -------------------------------------------------------------------------------------
    # Public API — contracts
    # -------------------------------------------------------------------------------------

    def create_contract(self, contract: Document) -> str:
        """Returns the generated id: contract-{epoch-ms}-{9 chars}."""
        contract_id = self._new_id("contract")
        data = _as_dict(contract)
        data.pop("id", None)
        stored = self._put(CONTRACTS, contract_id, self._validate_contract(contract_id, data))
        self.audit({"type": "contract", "action": "create", "id": contract_id, "data": stored})
        logger.info(f"Created contract {contract_id} ({data.get('customer_name')})")
        return contract_id

    def get_contract(self, contract_id: str) -> Optional[Contract]:
        data = self._get(CONTRACTS, contract_id)
        return None if data is None else self._validate_contract(contract_id, data)

    def list_contracts(self) -> List[Contract]:
        """Most recently imported first."""
        contracts = [self._validate_contract(i, d) for i, d in self._all(CONTRACTS)]
        return sorted(contracts, key=lambda c: c.imported_date, reverse=True)

    def update_contract(self, contract_id: str, **fields: Any) -> Contract:
        data = self._get(CONTRACTS, contract_id)
        if data is None:
            raise StorageError(f"Contract not found: {contract_id}")
        fields.pop("id", None)
        data.update(fields)
        contract = self._validate_contract(contract_id, data)
        self._put(CONTRACTS, contract_id, contract)
        self.audit({"type": "contract", "action": "update", "id": contract_id, "data": fields})
        return contract

    def delete_contract(self, contract_id: str) -> bool:
        deleted = self._delete(CONTRACTS, contract_id)
        if deleted:
            self.audit({"type": "contract", "action": "delete", "id": contract_id})
        return deleted

    def audit(self, entry: dict) -> None:
        """
        Append a JSON line to the audit trail.
        """
        entry = {"at": self._now(), **entry}
        try:
            with self.audit_log.open("a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")
        except OSError as e:  # pragma: no cover
            logger.error(f"Failed to write audit log: {e}")

    # -------------------------------------------------------------------------------------
    # Private helpers
    # -------------------------------------------------------------------------------------

    def _ensure_files(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.audit_log.parent.mkdir(parents=True, exist_ok=True)
        if not self.audit_log.exists():
            self.audit_log.write_text("", encoding="utf-8")

    def _now(self) -> str:
        return self._clock().isoformat()

    def _new_id(self, prefix: str) -> str:
        epoch_ms = int(self._clock().timestamp() * 1000)
        suffix = "".join(random.choices(ID_ALPHABET, k=ID_SUFFIX_LEN))
        return f"{prefix}-{epoch_ms}-{suffix}"

    def _merge_lead(self, lead_id: str, fields: Dict[str, Any], action: str, upsert: bool = False) -> Lead:
        existing = self._get(LEADS, lead_id)
        if existing is None and not upsert:
            raise StorageError(f"Lead not found: {lead_id}")
        data = {**(existing or {}), **fields, "last_updated": self._now()}
        lead = self._validate_lead(lead_id, data)
        self._put(LEADS, lead_id, lead)
        self.audit({"type": "lead", "action": action, "id": lead_id, "data": fields})
        return lead

    @staticmethod
    def _validate_lead(lead_id: str, data: Dict[str, Any]) -> Lead:
        try:
            return Lead(id=lead_id, **{k: v for k, v in data.items() if k != "id"})
        except ValidationError as e:
            raise StorageError(f"Invalid lead {lead_id}: {e}") from e

    @staticmethod
    def _validate_contract(contract_id: str, data: Dict[str, Any]) -> Contract:
        try:
            return Contract(id=contract_id, **{k: v for k, v in data.items() if k != "id"})
        except ValidationError as e:
            raise StorageError(f"Invalid contract {contract_id}: {e}") from e

    def _get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        try:
            row = self._conn.execute(
                "SELECT data FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Read failed for {collection}/{doc_id}: {e}") from e
        return None if row is None else json.loads(row[0])

    def _all(self, collection: str) -> List[tuple]:
        try:
            rows = self._conn.execute(
                "SELECT id, data FROM documents WHERE collection = ? ORDER BY id",
                (collection,),
            ).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Read failed for {collection}: {e}") from e
        return [(doc_id, json.loads(data)) for doc_id, data in rows]

    def _put(self, collection: str, doc_id: str, doc: BaseModel) -> Dict[str, Any]:
        data = doc.model_dump(mode="json", exclude={"id"}, exclude_none=True)
        try:
            self._conn.execute(
                "INSERT OR REPLACE INTO documents (collection, id, data) VALUES (?, ?, ?)",
                (collection, doc_id, json.dumps(data, ensure_ascii=False)),
            )
            self._conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Write failed for {collection}/{doc_id}: {e}")
            raise StorageError(f"Write failed for {collection}/{doc_id}: {e}") from e
        return data

    def _delete(self, collection: str, doc_id: str) -> bool:
        try:
            cur = self._conn.execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            )
            self._conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Delete failed for {collection}/{doc_id}: {e}") from e
        return cur.rowcount > 0
