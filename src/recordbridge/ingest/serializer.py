"""Value normalization and CSV re-serialization for bulk upload payloads."""

from __future__ import annotations

import re
from typing import Any

from recordbridge.core.exceptions import StateError
from recordbridge.models.document import CsvDocument
from recordbridge.models.mapping import MappingTable

_PHONE_LIKE = re.compile(r"^[\d\s\-().+]+$")
_NOT_PHONE_CHAR = re.compile(r"[^\d+]")
_BOOLEANS = {
    "true": "true",
    "yes": "true",
    "1": "true",
    "false": "false",
    "no": "false",
    "0": "false",
}
_NEEDS_QUOTES = (",", '"', "\n", "\r")


def format_value(value: Any) -> str:
    """Canonicalize one cell: emails lower-cased, phones reduced to digits, booleans spelled out."""
    text = ("" if value is None else str(value)).strip()

    if "@" in text:
        text = text.lower()

    if len(text) >= 10 and _PHONE_LIKE.match(text):
        text = _NOT_PHONE_CHAR.sub("", text)

    return _BOOLEANS.get(text.lower(), text)


def quote_value(value: str) -> str:
    if any(token in value for token in _NEEDS_QUOTES):
        return '"' + value.replace('"', '""') + '"'
    return value


def render_mapped_csv(document: CsvDocument | None, mapping: MappingTable | None) -> str:
    """Rows restricted to mapped columns, headed by target field names.

    Columns keep their original order and lines end with LF.
    """
    if document is None or mapping is None or len(mapping) == 0:
        raise StateError("No data or mappings available")

    unknown = [h for h in mapping.assignments if h not in document.headers]
    if unknown:
        raise StateError(f"Mapped columns not present in document: {', '.join(unknown)}")

    columns = mapping.ordered(document.headers)
    lines = [",".join(quote_value(target) for _, target in columns)]
    for row in document.rows:
        lines.append(",".join(quote_value(format_value(row[header])) for header, _ in columns))
    return "\n".join(lines)
