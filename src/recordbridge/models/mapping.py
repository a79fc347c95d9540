"""Column-to-field mapping models."""

from __future__ import annotations

from collections import Counter
from typing import Iterable

from pydantic import BaseModel, Field

from recordbridge.core.exceptions import MappingError
from recordbridge.models.schema import TargetField


class MatchCandidate(BaseModel):
    """A scored pairing of one CSV header with one target field."""

    csv_header: str
    field_name: str
    score: float = Field(ge=0.0, le=1.0)


class MappingValidation(BaseModel):
    """Result of checking a mapping table against the target schema."""

    missing_required: list[str] = Field(default_factory=list)
    duplicates: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class MappingTable(BaseModel):
    """CSV header -> target field name. One target per header.

    Constraints across entries (required coverage, duplicate targets) are only
    checked by :meth:`validate`, never on assignment.
    """

    assignments: dict[str, str] = Field(default_factory=dict)

    def assign(self, header: str, field_name: str) -> None:
        self.assignments[header] = field_name

    def clear(self, header: str) -> None:
        self.assignments.pop(header, None)

    def update(self, suggestions: dict[str, str]) -> None:
        for header, field_name in suggestions.items():
            self.assign(header, field_name)

    def target_for(self, header: str) -> str | None:
        return self.assignments.get(header)

    def ordered(self, headers: Iterable[str]) -> list[tuple[str, str]]:
        """Mapped (header, field) pairs in the given header order."""
        return [(h, self.assignments[h]) for h in headers if h in self.assignments]

    def __len__(self) -> int:
        return len(self.assignments)

    def __contains__(self, header: object) -> bool:
        return header in self.assignments

    def validate_against(self, fields: Iterable[TargetField]) -> MappingValidation:
        mapped = list(self.assignments.values())
        mapped_set = set(mapped)
        result = MappingValidation()

        for target in fields:
            if target.required and target.name not in mapped_set:
                result.missing_required.append(target.name)
                result.errors.append(
                    f"Required field '{target.label or target.name}' ({target.name}) is not mapped"
                )

        counts = Counter(mapped)
        # first-occurrence order keeps messages stable
        seen: set[str] = set()
        for name in mapped:
            if counts[name] > 1 and name not in seen:
                seen.add(name)
                result.duplicates.append(name)
        if result.duplicates:
            result.errors.append(f"Duplicate mappings found for: {', '.join(result.duplicates)}")
        return result

    def require_valid(self, fields: Iterable[TargetField]) -> MappingValidation:
        """Validate and raise MappingError when any constraint is violated."""
        result = self.validate_against(fields)
        if not result.ok:
            raise MappingError(
                "; ".join(result.errors),
                missing_required=result.missing_required,
                duplicates=result.duplicates,
            )
        return result
