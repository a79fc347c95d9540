"""UploadSession — owns one CSV document, its mapping, and the active bulk job.

A session walks the upload workflow: load file -> select object (auto-map) ->
adjust mapping -> optionally create missing fields -> upload. Everything held
here belongs to one caller; a new file replaces the document and mapping
together.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from recordbridge.bulk.orchestrator import BulkIngestOrchestrator
from recordbridge.core.config import AppSettings
from recordbridge.core.exceptions import MappingError, SchemaError, StateError
from recordbridge.core.protocols import IBulkJobService, ISchemaService
from recordbridge.core.types import SleepFn
from recordbridge.ingest import field_suggester, schema_matcher, serializer, tokenizer
from recordbridge.models.bulk import BulkJobOutcome
from recordbridge.models.document import CsvDocument, DataStatistics
from recordbridge.models.mapping import MappingTable, MappingValidation
from recordbridge.models.schema import FieldCreationResult, FieldSuggestion, TargetField

logger = logging.getLogger(__name__)


class UploadSession:
    """Single-owner state for one CSV-to-object upload."""

    def __init__(
        self,
        *,
        schema: ISchemaService,
        bulk: IBulkJobService,
        settings: AppSettings | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._settings = settings or AppSettings()
        self._schema = schema
        self.orchestrator = BulkIngestOrchestrator(
            bulk=bulk, config=self._settings.bulk, sleep=sleep
        )
        self.document: CsvDocument | None = None
        self.mapping = MappingTable()
        self.object_name: str | None = None
        self.fields: list[TargetField] = []

    # ---- document ----

    def _replace_document(self, document: CsvDocument) -> CsvDocument:
        mapping = MappingTable()
        if self.fields:
            mapping.update(self._suggest(document))
        self.document, self.mapping = document, mapping
        logger.info("loaded %d rows x %d columns", document.row_count, len(document.headers))
        return document

    def load_text(self, text: str) -> CsvDocument:
        """Parse CSV text and make it the session's document."""
        return self._replace_document(tokenizer.parse_text(text))

    def load_file(self, path: str | Path) -> CsvDocument:
        return self._replace_document(tokenizer.load_file(path))

    def statistics(self) -> DataStatistics:
        return tokenizer.compute_statistics(self._require_document())

    def _require_document(self) -> CsvDocument:
        if self.document is None:
            raise StateError("No CSV document loaded")
        return self.document

    def _require_object(self) -> str:
        if self.object_name is None:
            raise StateError("No target object selected")
        return self.object_name

    # ---- schema & mapping ----

    def _suggest(self, document: CsvDocument) -> dict[str, str]:
        return schema_matcher.suggest_mappings(
            document.headers, self.fields, self._settings.matching.suggestion_threshold
        )

    async def select_object(self, object_name: str) -> dict[str, str]:
        """Describe the object and apply mapping suggestions as defaults."""
        fields = await self._schema.list_fields(object_name)
        self.object_name = object_name
        self.fields = fields
        self.mapping = MappingTable()
        if self.document is None:
            return {}
        return self.auto_map()

    def auto_map(self) -> dict[str, str]:
        suggestions = self._suggest(self._require_document())
        self.mapping.update(suggestions)
        logger.info("suggested %d of %d column mappings", len(suggestions), len(self.document.headers))
        return suggestions

    def assign(self, header: str, field_name: str) -> None:
        if header not in self._require_document().headers:
            raise MappingError(f"Unknown CSV column '{header}'")
        if self.fields and field_name not in {f.name for f in self.fields}:
            raise MappingError(f"Unknown field '{field_name}' on {self.object_name}")
        self.mapping.assign(header, field_name)

    def clear(self, header: str) -> None:
        self.mapping.clear(header)

    def validate(self) -> MappingValidation:
        return self.mapping.validate_against(self.fields)

    # ---- new fields ----

    def suggest_new_fields(self) -> list[FieldSuggestion]:
        matching = self._settings.matching
        return field_suggester.suggest_new_fields(
            self._require_document(),
            self.mapping,
            self.fields,
            suffix=matching.custom_field_suffix,
            sample_size=matching.sample_size,
        )

    async def create_missing_fields(self) -> list[FieldCreationResult]:
        """Create every suggested field, collecting per-field outcomes.

        One failed creation does not stop the rest. The object is described
        again afterwards so new fields can be mapped.
        """
        object_name = self._require_object()
        results: list[FieldCreationResult] = []
        for suggestion in self.suggest_new_fields():
            try:
                await self._schema.create_field(object_name, suggestion)
            except SchemaError as exc:
                logger.warning("field %s not created: %s", suggestion.developer_name, exc)
                results.append(FieldCreationResult(suggestion=suggestion, ok=False, error=str(exc)))
            else:
                logger.info("created field %s", suggestion.developer_name)
                results.append(FieldCreationResult(suggestion=suggestion, ok=True))

        if results:
            self.fields = await self._schema.list_fields(object_name)
        return results

    # ---- upload ----

    def build_payload(self) -> str:
        return serializer.render_mapped_csv(self.document, self.mapping)

    async def upload(self, operation: str | None = None) -> BulkJobOutcome:
        """Validate the mapping, render the payload, and run the bulk job."""
        self._require_document()
        object_name = self._require_object()
        if len(self.mapping) == 0:
            raise StateError("No data or mappings available")
        self.mapping.require_valid(self.fields)
        payload = self.build_payload()
        return await self.orchestrator.run(object_name, payload, operation)
