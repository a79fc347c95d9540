"""Upload a CSV file into a Salesforce object through the Bulk API.

Usage:
    python scripts/bulk_upload.py --file contacts.csv --object Contact \
        --instance-url https://example.my.salesforce.com --token $SF_TOKEN \
        --map "E-mail=Email" --create-fields
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from typing import Any

from recordbridge.backends import create_backends
from recordbridge.core.config import AppSettings
from recordbridge.core.exceptions import RecordBridgeError
from recordbridge.core.logging import configure_logging
from recordbridge.ingest.session import UploadSession


def parse_overrides(pairs: list[str]) -> dict[str, str]:
    """``["Header=Field", "Other="]`` -> mapping; an empty field clears the header."""
    overrides: dict[str, str] = {}
    for pair in pairs:
        header, sep, field = pair.partition("=")
        if not sep or not header.strip():
            raise ValueError(f"expected HEADER=FIELD, got {pair!r}")
        overrides[header.strip()] = field.strip()
    return overrides


async def run_session(session: UploadSession, args: argparse.Namespace) -> int:
    """Drive one upload session from parsed CLI arguments. Returns an exit code."""
    document = session.load_file(args.file)
    print(f"Loaded {document.row_count} rows, columns: {', '.join(document.headers)}")

    suggestions = await session.select_object(args.object)
    print(f"Suggested {len(suggestions)} mappings for {args.object}")

    if args.create_fields:
        for result in await session.create_missing_fields():
            status = "created" if result.ok else f"FAILED ({result.error})"
            print(f"  {result.suggestion.developer_name}: {status}")
        session.auto_map()

    for header, field in parse_overrides(args.map or []).items():
        if field:
            session.assign(header, field)
        else:
            session.clear(header)

    for header, field in session.mapping.ordered(document.headers):
        print(f"  {header} -> {field}")

    validation = session.validate()
    if not validation.ok:
        for error in validation.errors:
            print(f"  ERROR: {error}")
        return 2

    if args.dry_run:
        print(session.build_payload())
        return 0

    outcome = await session.upload(args.operation)
    print(
        f"Job {outcome.job_id}: {outcome.phase} "
        f"(processed={outcome.records_processed}, failed={outcome.records_failed}, "
        f"succeeded={outcome.success_count})"
    )
    if outcome.failed_results:
        print(outcome.failed_results)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Map a CSV onto a Salesforce object and bulk-load it")
    parser.add_argument("--file", required=True, help="CSV file to upload")
    parser.add_argument("--object", required=True, help="Target object API name (e.g. Contact)")
    parser.add_argument("--operation", default=None, help="Bulk operation (default from settings)")
    parser.add_argument("--instance-url", default=None, help="Org instance URL")
    parser.add_argument("--token", default=os.getenv("SF_ACCESS_TOKEN", ""), help="OAuth access token")
    parser.add_argument("--map", action="append", metavar="HEADER=FIELD", help="Override one mapping")
    parser.add_argument("--create-fields", action="store_true", help="Create custom fields for unmapped columns")
    parser.add_argument("--dry-run", action="store_true", help="Print the payload instead of uploading")
    return parser


async def _main(args: argparse.Namespace) -> int:
    settings = AppSettings()
    if args.instance_url:
        settings.salesforce.instance_url = args.instance_url
    configure_logging(settings)

    schema, bulk, client = create_backends(args.token, settings)
    try:
        session = UploadSession(schema=schema, bulk=bulk, settings=settings)
        return await run_session(session, args)
    finally:
        await client.aclose()


def main(argv: Any = None) -> None:
    args = build_parser().parse_args(argv)
    if not args.token:
        print("An access token is required (--token or SF_ACCESS_TOKEN)", file=sys.stderr)
        sys.exit(2)
    try:
        sys.exit(asyncio.run(_main(args)))
    except (RecordBridgeError, ValueError) as exc:
        print(f"Upload failed: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
