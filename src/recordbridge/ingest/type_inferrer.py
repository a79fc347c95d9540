"""TypeInferrer — proposes a target field type for an unmapped column by sampling it."""

from __future__ import annotations

import re

from dateutil import parser as dateparser

from recordbridge.models.document import CsvDocument
from recordbridge.models.schema import FieldType, InferredType

SAMPLE_SIZE = 20
NUMBER_PRECISION = 18
BOOLEAN_TOKENS = frozenset({"true", "false", "yes", "no", "1", "0"})

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[\d\s\-().+]{10,}$")
URL_RE = re.compile(r"^https?://")
NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")

# (upper bound on observed length, type, declared length)
TEXT_TIERS: tuple[tuple[int, FieldType, int], ...] = (
    (80, FieldType.TEXT, 80),
    (255, FieldType.TEXT, 255),
    (32768, FieldType.LONG_TEXT_AREA, 32768),
)
MAX_LONG_TEXT = 131072


def sample_values(document: CsvDocument, header: str, size: int = SAMPLE_SIZE) -> list[str]:
    """First ``size`` non-blank values of a column, in row order."""
    samples: list[str] = []
    for value in document.column(header):
        if value.strip():
            samples.append(value)
            if len(samples) >= size:
                break
    return samples


def is_number(value: str) -> bool:
    return bool(NUMBER_RE.match(value.strip()))


def is_date(value: str) -> bool:
    # bare words like "May" parse as dates; require at least one digit
    if not any(ch.isdigit() for ch in value):
        return False
    try:
        dateparser.parse(value)
    except (ValueError, OverflowError):
        return False
    return True


def infer_from_samples(samples: list[str]) -> InferredType:
    """Fixed-priority type detection over an already-sampled column."""
    if not samples:
        return InferredType(type=FieldType.TEXT, length=255)

    if any(EMAIL_RE.match(v) for v in samples):
        return InferredType(type=FieldType.EMAIL)
    if any(PHONE_RE.match(v) for v in samples):
        return InferredType(type=FieldType.PHONE)
    if any(URL_RE.match(v) for v in samples):
        return InferredType(type=FieldType.URL)
    if all(v.strip().lower() in BOOLEAN_TOKENS for v in samples):
        return InferredType(type=FieldType.CHECKBOX)
    if all(is_number(v) for v in samples):
        scale = 2 if any("." in v for v in samples) else 0
        return InferredType(type=FieldType.NUMBER, precision=NUMBER_PRECISION, scale=scale)
    if any(is_date(v) for v in samples):
        return InferredType(type=FieldType.DATE)

    longest = max(len(v) for v in samples)
    for bound, field_type, length in TEXT_TIERS:
        if longest <= bound:
            return InferredType(type=field_type, length=length)
    return InferredType(type=FieldType.LONG_TEXT_AREA, length=MAX_LONG_TEXT)


def infer_field_type(
    header: str, document: CsvDocument | None, sample_size: int = SAMPLE_SIZE
) -> InferredType:
    """Infer a field type for one column of a parsed document."""
    if document is None or not document.rows:
        return InferredType(type=FieldType.TEXT, length=255)
    return infer_from_samples(sample_values(document, header, sample_size))
