"""Tests for custom field suggestions."""

from __future__ import annotations

import pytest

from recordbridge.ingest.field_suggester import developer_name, field_label, suggest_new_fields
from recordbridge.ingest.tokenizer import parse_text
from recordbridge.models.mapping import MappingTable
from recordbridge.models.schema import FieldType, TargetField


class TestDeveloperName:
    @pytest.mark.parametrize(
        ("header", "expected"),
        [
            ("Shoe Size (EU)", "Shoe_Size_EU__c"),
            ("  Loyalty   Tier ", "Loyalty_Tier__c"),
            ("2nd Phone", "X2nd_Phone__c"),
            ("Region", "Region__c"),
            ("#", "X__c"),
        ],
    )
    def test_developer_name(self, header, expected):
        assert developer_name(header) == expected

    def test_custom_suffix(self):
        assert developer_name("Tier", suffix="_x") == "Tier_x"

    def test_suffix_not_repeated(self):
        assert developer_name("Status Flag", suffix="Flag") == "Status_Flag"


class TestFieldLabel:
    def test_separators_become_spaces_and_words_capitalized(self):
        assert field_label("loyalty_tier-code") == "Loyalty Tier Code"

    def test_keeps_existing_capitals(self):
        assert field_label("VIP status") == "VIP Status"


class TestSuggestNewFields:
    def test_only_unmapped_and_unknown_headers(self):
        doc = parse_text(
            "Email,Loyalty Tier,Region,Score\n"
            "a@b.com,gold,EMEA,1.5\n"
            "c@d.com,silver,APAC,2\n"
        )
        mapping = MappingTable(assignments={"Email": "Email"})
        existing = [TargetField(name="Email"), TargetField(name="region__C")]

        suggestions = suggest_new_fields(doc, mapping, existing)

        assert [s.developer_name for s in suggestions] == ["Loyalty_Tier__c", "Score__c"]
        tier, score = suggestions
        assert tier.label == "Loyalty Tier"
        assert tier.type == FieldType.TEXT
        assert tier.length == 80
        assert score.type == FieldType.NUMBER
        assert (score.precision, score.scale) == (18, 2)
        assert all(s.required is False for s in suggestions)
