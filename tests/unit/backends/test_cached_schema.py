"""Tests for the describe cache wrapper."""

from __future__ import annotations

import asyncio

import pytest

from recordbridge.backends.cached_schema import CachedSchemaService
from recordbridge.core.exceptions import CacheError, SchemaError
from recordbridge.models.schema import FieldSuggestion, FieldType, TargetField
from tests.fakes import MemoryCacheBackend, MemorySchemaService


@pytest.fixture
def inner():
    service = MemorySchemaService()
    service.add_object(
        "Lead",
        [TargetField(name="Company", label="Company", required=True, picklist_values=["a"])],
    )
    return service


def test_second_describe_is_served_from_cache(inner):
    cached = CachedSchemaService(inner, MemoryCacheBackend())

    first = asyncio.run(cached.list_fields("Lead"))
    second = asyncio.run(cached.list_fields("Lead"))

    assert first == second
    assert second[0].required is True
    assert inner.describe_calls == 1


def test_create_field_invalidates(inner):
    cached = CachedSchemaService(inner, MemoryCacheBackend())
    asyncio.run(cached.list_fields("Lead"))

    suggestion = FieldSuggestion(
        csv_header="Tier", developer_name="Tier__c", label="Tier", type=FieldType.TEXT, length=80
    )
    asyncio.run(cached.create_field("Lead", suggestion))
    fields = asyncio.run(cached.list_fields("Lead"))

    assert [f.name for f in fields] == ["Company", "Tier__c"]
    assert inner.describe_calls == 2


def test_errors_are_not_cached(inner):
    cache = MemoryCacheBackend()
    cached = CachedSchemaService(inner, cache)
    with pytest.raises(SchemaError):
        asyncio.run(cached.list_fields("Missing"))
    assert cache.get("describe:Missing") is None


class UnavailableDeleteCache(MemoryCacheBackend):
    def delete(self, key: str) -> None:
        raise CacheError("delete failed: connection refused")


def test_invalidation_failure_does_not_mask_create_outcome(inner):
    cached = CachedSchemaService(inner, UnavailableDeleteCache())
    suggestion = FieldSuggestion(csv_header="Tier", developer_name="Tier__c", label="Tier")

    asyncio.run(cached.create_field("Lead", suggestion))
    assert [s.developer_name for _, s in inner.created] == ["Tier__c"]

    inner.fail_creation("Tier2__c")
    failing = FieldSuggestion(csv_header="Tier2", developer_name="Tier2__c", label="Tier2")
    with pytest.raises(SchemaError, match="duplicate developer name"):
        asyncio.run(cached.create_field("Lead", failing))
