"""Proposes custom fields for CSV columns with no mapping."""

from __future__ import annotations

import re
from typing import Iterable

from recordbridge.ingest.type_inferrer import SAMPLE_SIZE, infer_field_type
from recordbridge.models.document import CsvDocument
from recordbridge.models.mapping import MappingTable
from recordbridge.models.schema import FieldSuggestion, TargetField

CUSTOM_FIELD_SUFFIX = "__c"

_UNSAFE = re.compile(r"[^a-zA-Z0-9\s]")
_WHITESPACE = re.compile(r"\s+")
_WORD_START = re.compile(r"\b\w")
_LEADING_LETTER = re.compile(r"[a-zA-Z]")


def developer_name(csv_header: str, suffix: str = CUSTOM_FIELD_SUFFIX) -> str:
    """Schema-safe identifier for a header, e.g. ``"Shoe Size (EU)"`` -> ``Shoe_Size_EU__c``."""
    name = _WHITESPACE.sub("_", _UNSAFE.sub("", csv_header)).strip("_")
    if not _LEADING_LETTER.match(name):
        name = "X" + name
    if not name.endswith(suffix):
        name += suffix
    return name


def field_label(csv_header: str) -> str:
    """Readable label: separators become spaces, each word capitalized."""
    spaced = re.sub(r"[_-]", " ", csv_header)
    return _WORD_START.sub(lambda m: m.group(0).upper(), spaced)


def build_suggestion(
    csv_header: str,
    document: CsvDocument | None,
    suffix: str = CUSTOM_FIELD_SUFFIX,
    sample_size: int = SAMPLE_SIZE,
) -> FieldSuggestion:
    inferred = infer_field_type(csv_header, document, sample_size)
    return FieldSuggestion(
        csv_header=csv_header,
        developer_name=developer_name(csv_header, suffix),
        label=field_label(csv_header),
        type=inferred.type,
        length=inferred.length,
        precision=inferred.precision,
        scale=inferred.scale,
    )


def suggest_new_fields(
    document: CsvDocument,
    mapping: MappingTable,
    fields: Iterable[TargetField],
    suffix: str = CUSTOM_FIELD_SUFFIX,
    sample_size: int = SAMPLE_SIZE,
) -> list[FieldSuggestion]:
    """Suggestions for unmapped headers whose identifier is not already a field."""
    existing = {f.name.lower() for f in fields}
    suggestions: list[FieldSuggestion] = []
    for header in document.headers:
        if header in mapping:
            continue
        suggestion = build_suggestion(header, document, suffix, sample_size)
        if suggestion.developer_name.lower() in existing:
            continue
        suggestions.append(suggestion)
    return suggestions
