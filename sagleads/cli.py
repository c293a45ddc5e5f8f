# sagleads/cli.py
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from sagleads.importer import ContractImporter
from sagleads.processors.contract_reader import (
    is_contract_file,
    load_template,
    parse_contract_files,
)
from sagleads.processors.outreach import EMAIL_TEMPLATES, fill_template, get_template
from sagleads.processors.validation import validate_contract
from sagleads.services.geocoding import GoogleGeocoder
from sagleads.session import ImportSession
from sagleads.utils.config import Settings, load_settings
from sagleads.utils.errors import SagLeadsError, StorageError
from sagleads.utils.export import default_export_name, export_leads
from sagleads.utils.schema import ImportProgress
from sagleads.utils.storage import Storage


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sagleads", description="Contract import and lead tracking")
    sub = parser.add_subparsers(dest="command", required=True)

    p_preview = sub.add_parser("preview", help="Parse and validate contract spreadsheets")
    p_preview.add_argument("files", nargs="+", help="Contract .xlsx/.xls/.csv files")

    p_import = sub.add_parser("import", help="Import contract spreadsheets as contacted leads")
    p_import.add_argument("files", nargs="+", help="Contract .xlsx/.xls/.csv files")
    p_import.add_argument(
        "--include-invalid",
        action="store_true",
        help="Also submit records that failed validation",
    )

    sub.add_parser("contacted", help="List contacted leads as JSON")

    p_export = sub.add_parser("export", help="Export all leads to CSV or XLSX")
    p_export.add_argument("output", nargs="?", help="Output path (default sag-leads-YYYY-MM-DD.csv)")

    p_email = sub.add_parser("email", help="Print an outreach email filled in for one lead")
    p_email.add_argument("lead_id")
    p_email.add_argument(
        "--template",
        default="initial-outreach",
        choices=[t.id for t in EMAIL_TEMPLATES],
    )
    return parser


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level, format="{time:HH:mm:ss} | {level} | {message}")


def _contract_paths(files: List[str]) -> List[Path]:
    paths = [Path(f) for f in files]
    skipped = [p for p in paths if not is_contract_file(p)]
    for p in skipped:
        logger.warning(f"Skipping {p.name}: not a spreadsheet")
    return [p for p in paths if is_contract_file(p)]


def _print_progress(progress: ImportProgress) -> None:
    print(f"[{progress.processed}/{progress.total}] {progress.current_file} ({progress.status})")


def cmd_preview(args: argparse.Namespace, settings: Settings) -> int:
    paths = _contract_paths(args.files)
    template = load_template(settings.template_path) if settings.template_path else None
    records = parse_contract_files(paths, template)
    invalid = 0
    for path, record in zip(paths, records):
        check = validate_contract(record)
        if check.valid:
            print(f"OK    {path.name}: {record.customer_name}")
        else:
            invalid += 1
            print(f"CHECK {path.name}: {'; '.join(check.errors)}")
    print(f"{len(records) - invalid} valid, {invalid} need attention")
    return 0


def cmd_import(args: argparse.Namespace, settings: Settings, storage: Storage) -> int:
    geocoder = GoogleGeocoder(settings.google_maps_api_key, timeout=settings.geocode_timeout)
    importer = ContractImporter(
        geocoder,
        storage,
        date_formats=settings.date_formats,
        dayfirst=settings.dayfirst,
    )
    template = load_template(settings.template_path) if settings.template_path else None
    session = ImportSession(importer, template)
    session.load(_contract_paths(args.files))
    for row in session.invalid_rows:
        logger.warning(f"{row.source}: {'; '.join(row.validation.errors)}")

    result = session.confirm(_print_progress, include_invalid=args.include_invalid)
    print(json.dumps(result.model_dump(by_alias=True), indent=2))
    return 0 if result.success else 1


def cmd_contacted(storage: Storage) -> int:
    leads = storage.get_contacted_leads()
    print(json.dumps([lead.model_dump(mode="json", by_alias=True, exclude_none=True) for lead in leads], indent=2))
    return 0


def cmd_export(args: argparse.Namespace, storage: Storage) -> int:
    out = export_leads(storage.list_leads(), args.output or default_export_name())
    print(str(out))
    return 0


def cmd_email(args: argparse.Namespace, storage: Storage) -> int:
    lead = storage.get_lead(args.lead_id)
    if lead is None:
        raise StorageError(f"Lead not found: {args.lead_id}")
    filled = fill_template(get_template(args.template), lead)
    print(f"Subject: {filled.subject}\n\n{filled.body}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings()
    except SagLeadsError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2
    _configure_logging(settings.log_level)

    try:
        if args.command == "preview":
            return cmd_preview(args, settings)
        with Storage(settings.db_path, settings.audit_log) as storage:
            if args.command == "import":
                return cmd_import(args, settings, storage)
            if args.command == "contacted":
                return cmd_contacted(storage)
            if args.command == "email":
                return cmd_email(args, storage)
            return cmd_export(args, storage)
    except SagLeadsError as exc:
        logger.error(f"Fatal error: {exc}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
