# sagleads/session.py
from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional

from loguru import logger
from pydantic import BaseModel

from sagleads.importer import ContractImporter, ProgressCallback
from sagleads.processors.contract_reader import CellTemplate, parse_contract_files
from sagleads.processors.validation import validate_contract
from sagleads.utils.errors import ImportStateError
from sagleads.utils.schema import CONTRACT_FIELDS, ContractRecord, ImportResult, ValidationResult


class Stage(str, Enum):
    UPLOAD = "upload"
    PREVIEW = "preview"
    IMPORTING = "importing"
    COMPLETE = "complete"


class PreviewRow(BaseModel):
    source: str
    record: ContractRecord
    validation: ValidationResult


class ImportSession:
    """
    One batch as the user walks it: upload -> preview -> importing -> complete.

    `complete` is terminal whether or not every record made it; `reset()` starts over.
    """

    def __init__(self, importer: ContractImporter, template: Optional[CellTemplate] = None) -> None:
        self.importer = importer
        self.template = template
        self.stage = Stage.UPLOAD
        self.rows: List[PreviewRow] = []
        self.result: Optional[ImportResult] = None

    # ---- upload -> preview ----
    def load(self, paths: Iterable[str | Path]) -> List[PreviewRow]:
        self._require(Stage.UPLOAD)
        paths = [Path(p) for p in paths]
        if not paths:
            raise ImportStateError("No files selected")
        records = parse_contract_files(paths, self.template)
        self.rows = [
            PreviewRow(source=p.name, record=r, validation=validate_contract(r))
            for p, r in zip(paths, records)
        ]
        self.stage = Stage.PREVIEW
        logger.info(f"Previewing {len(self.rows)} contract(s), {len(self.invalid_rows)} need attention")
        return self.rows

    # ---- preview edits ----
    def update_record(self, index: int, **fields: str) -> PreviewRow:
        self._require(Stage.PREVIEW)
        unknown = set(fields) - set(CONTRACT_FIELDS)
        if unknown:
            raise ValueError(f"Unknown contract field(s): {', '.join(sorted(unknown))}")
        row = self.rows[index]
        record = ContractRecord.model_validate({**row.record.model_dump(), **fields})
        self.rows[index] = PreviewRow(source=row.source, record=record, validation=validate_contract(record))
        return self.rows[index]

    def remove_record(self, index: int) -> PreviewRow:
        self._require(Stage.PREVIEW)
        return self.rows.pop(index)

    @property
    def valid_rows(self) -> List[PreviewRow]:
        return [r for r in self.rows if r.validation.valid]

    @property
    def invalid_rows(self) -> List[PreviewRow]:
        return [r for r in self.rows if not r.validation.valid]

    # ---- preview -> importing -> complete ----
    def confirm(self, on_progress: Optional[ProgressCallback] = None, include_invalid: bool = False) -> ImportResult:
        self._require(Stage.PREVIEW)
        rows = self.rows if include_invalid else self.valid_rows
        self.stage = Stage.IMPORTING
        try:
            self.result = self.importer.run([r.record for r in rows], on_progress)
        finally:
            self.stage = Stage.COMPLETE
        return self.result

    def reset(self) -> None:
        self.stage = Stage.UPLOAD
        self.rows = []
        self.result = None

    def _require(self, stage: Stage) -> None:
        if self.stage is not stage:
            raise ImportStateError(f"Expected stage {stage.value}, session is in {self.stage.value}")
