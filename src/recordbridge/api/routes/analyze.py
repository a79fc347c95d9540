"""Stateless CSV analysis: parse, profile, infer types, and suggest mappings."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from recordbridge.core.config import AppSettings
from recordbridge.core.exceptions import ParseError
from recordbridge.ingest import field_suggester, schema_matcher, tokenizer, type_inferrer
from recordbridge.models.mapping import MappingTable
from recordbridge.models.schema import TargetField

router = APIRouter(tags=["analyze"])


class AnalyzeRequest(BaseModel):
    csv_text: str
    fields: list[TargetField] = Field(default_factory=list)


@router.post("/analyze")
async def analyze(body: AnalyzeRequest, request: Request) -> dict[str, Any]:
    """Profile a CSV and, when target fields are supplied, propose a mapping."""
    settings: AppSettings = getattr(request.app.state, "settings", None) or AppSettings()
    matching = settings.matching
    try:
        document = tokenizer.parse_text(body.csv_text)
    except ParseError as exc:
        raise HTTPException(status_code=422, detail=f"CSV parsing failed: {exc}") from exc

    mapping = MappingTable()
    mapping.update(
        schema_matcher.suggest_mappings(document.headers, body.fields, matching.suggestion_threshold)
    )
    validation = mapping.validate_against(body.fields)
    new_fields = field_suggester.suggest_new_fields(
        document,
        mapping,
        body.fields,
        suffix=matching.custom_field_suffix,
        sample_size=matching.sample_size,
    )

    return {
        "headers": document.headers,
        "row_count": document.row_count,
        "preview": document.preview(),
        "statistics": tokenizer.compute_statistics(document).model_dump(),
        "inferred_types": {
            header: type_inferrer.infer_field_type(
                header, document, matching.sample_size
            ).model_dump(mode="json")
            for header in document.headers
        },
        "mappings": dict(mapping.ordered(document.headers)),
        "validation": validation.model_dump(),
        "new_fields": [s.model_dump(mode="json") for s in new_fields],
    }
