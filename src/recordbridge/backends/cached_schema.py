"""Describe cache in front of an ISchemaService."""

from __future__ import annotations

import json
import logging

from recordbridge.core.exceptions import CacheError
from recordbridge.core.protocols import ICacheBackend, ISchemaService
from recordbridge.models.schema import FieldSuggestion, SObjectSummary, TargetField

logger = logging.getLogger(__name__)


class CachedSchemaService:
    """ISchemaService that caches field describes for ``ttl`` seconds.

    Creating a field drops the object's cached describe so the new field is
    visible on the next ``list_fields``.
    """

    CACHE_TTL = 300  # 5 minutes

    def __init__(self, inner: ISchemaService, cache: ICacheBackend, ttl: int = CACHE_TTL) -> None:
        self._inner = inner
        self._cache = cache
        self._ttl = ttl

    @staticmethod
    def _key(object_name: str) -> str:
        return f"describe:{object_name}"

    async def list_objects(self) -> list[SObjectSummary]:
        return await self._inner.list_objects()

    async def list_fields(self, object_name: str) -> list[TargetField]:
        key = self._key(object_name)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("describe cache hit for %s", object_name)
            return [TargetField.model_validate(item) for item in json.loads(cached)]

        fields = await self._inner.list_fields(object_name)
        self._cache.setex(key, self._ttl, json.dumps([f.model_dump(mode="json") for f in fields]))
        return fields

    async def create_field(self, object_name: str, suggestion: FieldSuggestion) -> None:
        try:
            await self._inner.create_field(object_name, suggestion)
        finally:
            self._invalidate(object_name)

    def _invalidate(self, object_name: str) -> None:
        try:
            self._cache.delete(self._key(object_name))
        except CacheError as exc:
            logger.warning("describe cache for %s not invalidated: %s", object_name, exc)
