# sagleads/importer.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from loguru import logger

from sagleads.processors.lead_mapper import contract_to_lead
from sagleads.utils.config import DEFAULT_DATE_FORMATS
from sagleads.utils.schema import (
    Contract,
    ContractRecord,
    ImportProgress,
    ImportResult,
    Lead,
)

ProgressCallback = Callable[[ImportProgress], None]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def record_label(position: int) -> str:
    return f"Contract {position}"


def contacted_note(when: datetime) -> str:
    return f"Imported from contract on {when.month}/{when.day}/{when.year}"


class ContractImporter:
    """
    Turns contract records into leads + contracts, one record at a time.

    For each record: map -> geocode -> create lead -> mark contacted -> create contract.
    A failing record is logged into the result and the batch carries on.
    """

    def __init__(
        self,
        geocoder,
        storage,
        date_formats: Sequence[str] = DEFAULT_DATE_FORMATS,
        dayfirst: bool = False,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.geocoder = geocoder
        self.storage = storage
        self.date_formats = list(date_formats)
        self.dayfirst = dayfirst
        self._clock = clock or _utc_now

    def run(
        self,
        records: Sequence[ContractRecord],
        on_progress: Optional[ProgressCallback] = None,
    ) -> ImportResult:
        total = len(records)
        result = ImportResult()
        logger.info(f"Importing {total} contract(s)")

        for index, record in enumerate(records):
            position = index + 1
            self._report(on_progress, index, total, f"Contract {position}/{total}", "processing")
            try:
                self.import_one(record)
                result.record_success()
            except Exception as e:
                logger.warning(f"Error importing contract {position}: {e}")
                result.record_failure(record_label(position), str(e) or type(e).__name__)

        self._report(on_progress, total, total, "Complete", "completed" if result.success else "error")
        logger.info(
            f"Import finished: {result.imported_count} imported, {result.failed_count} failed"
        )
        return result

    def import_one(self, record: ContractRecord) -> str:
        """Import a single record; returns the new lead id. Raises on any failure."""
        draft = contract_to_lead(record, self.date_formats, self.dayfirst)
        location = self.geocoder.geocode(draft.address)

        lead_fields = {**draft.model_dump(exclude_none=True), "location": location, "is_manual": True}
        lead_id = self.storage.create_lead(lead_fields)

        now = self._clock()
        lead = Lead(id=lead_id, **lead_fields)
        self.storage.mark_contacted(lead, contacted_note(now))

        contract = Contract(
            **record.model_dump(),
            location=location,
            imported_date=now.isoformat(),
            linked_lead_id=lead_id,
        )
        self.storage.create_contract(contract)
        return lead_id

    @staticmethod
    def _report(
        on_progress: Optional[ProgressCallback],
        processed: int,
        total: int,
        label: str,
        status: str,
    ) -> None:
        if on_progress is not None:
            on_progress(ImportProgress(processed=processed, total=total, current_file=label, status=status))
