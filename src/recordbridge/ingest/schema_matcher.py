"""SchemaMatcher — scores CSV headers against target fields and proposes mappings.

Scoring rules, highest applicable wins:

* 1.0  normalized header equals normalized field name or label
* 1.0  header is exactly a known synonym of a field whose name is exactly the anchor
* 0.9  field name contains a synonym anchor and header contains one of its synonyms
* 0.8  header and field name contain one another
* 0.7  header and field label contain one another

When two fields reach the same best score the earlier field in catalog order
is kept. Describe output is ordered, so this makes suggestions stable.
"""

from __future__ import annotations

import re
from typing import Iterable

from recordbridge.models.mapping import MatchCandidate
from recordbridge.models.schema import TargetField

DEFAULT_THRESHOLD = 0.6

SYNONYMS: dict[str, tuple[str, ...]] = {
    "firstname": ("firstname", "fname", "givenname"),
    "lastname": ("lastname", "lname", "surname", "familyname"),
    "email": ("email", "emailaddress", "mail"),
    "phone": ("phone", "phonenumber", "telephone", "mobile"),
    "company": ("company", "companyname", "organization", "account"),
    "title": ("title", "jobtitle", "position"),
    "street": ("street", "address", "address1", "streetaddress"),
    "city": ("city", "town"),
    "state": ("state", "province", "region"),
    "postalcode": ("zip", "zipcode", "postalcode", "postcode"),
    "country": ("country", "nation"),
}

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_field_name(name: str) -> str:
    """Lower-case, drop non-alphanumerics, strip one trailing ``id``."""
    normalized = _NON_ALNUM.sub("", (name or "").lower())
    if normalized.endswith("id"):
        normalized = normalized[:-2]
    return normalized


def _contains_either(a: str, b: str) -> bool:
    if not a or not b:
        return False
    return a in b or b in a


def synonym_score(header_norm: str, field_norm: str) -> float:
    score = 0.0
    for anchor, synonyms in SYNONYMS.items():
        if anchor not in field_norm:
            continue
        if field_norm == anchor and header_norm in synonyms:
            return 1.0
        if any(s in header_norm for s in synonyms):
            score = max(score, 0.9)
    return score


def score_field(csv_header: str, field: TargetField) -> float:
    """Similarity of a CSV header to one target field, in [0, 1]."""
    header_norm = normalize_field_name(csv_header)
    name_norm = normalize_field_name(field.name)
    label_norm = normalize_field_name(field.label)

    if header_norm and header_norm in (name_norm, label_norm):
        return 1.0

    score = 0.0
    if _contains_either(header_norm, name_norm):
        score = max(score, 0.8)
    if _contains_either(header_norm, label_norm):
        score = max(score, 0.7)
    if header_norm:
        score = max(score, synonym_score(header_norm, name_norm))
    return score


def best_match(csv_header: str, fields: Iterable[TargetField]) -> MatchCandidate | None:
    """Highest-scoring field for a header; first seen wins ties."""
    best: MatchCandidate | None = None
    for field in fields:
        score = score_field(csv_header, field)
        if score > (best.score if best else 0.0):
            best = MatchCandidate(csv_header=csv_header, field_name=field.name, score=score)
    return best


def suggest_mappings(
    headers: Iterable[str],
    fields: Iterable[TargetField],
    threshold: float = DEFAULT_THRESHOLD,
) -> dict[str, str]:
    """Header -> field name for every header whose best score exceeds the threshold.

    Fields that accept no writes are never suggested.
    """
    candidates = [f for f in fields if f.writable]
    suggestions: dict[str, str] = {}
    for header in headers:
        match = best_match(header, candidates)
        if match is not None and match.score > threshold:
            suggestions[header] = match.field_name
    return suggestions
