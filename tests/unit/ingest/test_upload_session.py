"""End-to-end session tests against in-memory backends."""

from __future__ import annotations

import asyncio

import pytest

from recordbridge.core.exceptions import MappingError, ParseError, SchemaError, StateError
from recordbridge.ingest.session import UploadSession
from recordbridge.models.bulk import JobPhase
from recordbridge.models.schema import FieldType, TargetField
from tests.fakes import MemoryBulkJobService, MemorySchemaService, RecordingSleep

CONTACT_FIELDS = [
    TargetField(name="Id", label="Contact ID", type=FieldType.ID, createable=False, updateable=False),
    TargetField(name="FirstName", label="First Name"),
    TargetField(name="LastName", label="Last Name", required=True),
    TargetField(name="Email", label="Email", type=FieldType.EMAIL),
    TargetField(name="Phone", label="Business Phone", type=FieldType.PHONE),
]

CSV_TEXT = (
    "fname,Surname,Email Address,Phone Number,Loyalty Tier\n"
    "Ada,Lovelace,ADA@Example.com,(555) 123-4567,gold\n"
    "Alan,Turing,alan@example.com,555.987.6543,silver\n"
)


@pytest.fixture
def schema():
    service = MemorySchemaService()
    service.add_object("Contact", CONTACT_FIELDS)
    return service


@pytest.fixture
def bulk():
    return MemoryBulkJobService(states=["InProgress", "JobComplete"], processed=2)


@pytest.fixture
def session(schema, bulk):
    return UploadSession(schema=schema, bulk=bulk, sleep=RecordingSleep())


def test_select_object_applies_suggestions(session):
    session.load_text(CSV_TEXT)
    suggestions = asyncio.run(session.select_object("Contact"))
    assert suggestions == {
        "fname": "FirstName",
        "Surname": "LastName",
        "Email Address": "Email",
        "Phone Number": "Phone",
    }
    assert session.validate().ok


def test_upload_renders_normalized_payload(session, bulk):
    session.load_text(CSV_TEXT)
    asyncio.run(session.select_object("Contact"))

    outcome = asyncio.run(session.upload())

    assert outcome.phase == JobPhase.COMPLETED
    assert bulk.payloads[outcome.job_id] == (
        "FirstName,LastName,Email,Phone\n"
        "Ada,Lovelace,ada@example.com,5551234567\n"
        "Alan,Turing,alan@example.com,5559876543"
    )


def test_upload_with_invalid_mapping_raises_mapping_error(session, bulk):
    session.load_text(CSV_TEXT)
    asyncio.run(session.select_object("Contact"))
    session.clear("Surname")

    with pytest.raises(MappingError) as excinfo:
        asyncio.run(session.upload())

    assert excinfo.value.missing_required == ["LastName"]
    assert bulk.calls == []


def test_upload_preconditions(session):
    with pytest.raises(StateError):
        asyncio.run(session.upload())
    session.load_text(CSV_TEXT)
    with pytest.raises(StateError):
        asyncio.run(session.upload())


def test_assign_rejects_unknown_header_and_field(session):
    session.load_text(CSV_TEXT)
    asyncio.run(session.select_object("Contact"))
    with pytest.raises(MappingError):
        session.assign("Nope", "Email")
    with pytest.raises(MappingError):
        session.assign("Loyalty Tier", "Tier__c")


def test_unknown_object_propagates_schema_error(session):
    session.load_text(CSV_TEXT)
    with pytest.raises(SchemaError):
        asyncio.run(session.select_object("Nope"))
    assert session.object_name is None


def test_create_missing_fields_collects_failures(session, schema):
    session.load_text(CSV_TEXT + "Grace,Hopper,grace@example.com,5551112222,platinum\n")
    asyncio.run(session.select_object("Contact"))
    session.clear("Phone Number")
    schema.fail_creation("Phone_Number__c")

    results = asyncio.run(session.create_missing_fields())

    assert [(r.suggestion.developer_name, r.ok) for r in results] == [
        ("Phone_Number__c", False),
        ("Loyalty_Tier__c", True),
    ]
    assert "duplicate developer name" in results[0].error
    assert "Loyalty_Tier__c" in {f.name for f in session.fields}
    session.assign("Loyalty Tier", "Loyalty_Tier__c")
    assert session.validate().ok


def test_new_file_replaces_document_and_mapping(session):
    session.load_text(CSV_TEXT)
    asyncio.run(session.select_object("Contact"))
    session.load_text("Last Name,Notes\nHopper,admiral\n")
    assert session.mapping.assignments == {"Last Name": "LastName"}


def test_failed_parse_keeps_previous_state(session):
    session.load_text(CSV_TEXT)
    with pytest.raises(ParseError):
        session.load_text("   ")
    assert session.document.row_count == 2


def test_statistics(session):
    session.load_text(CSV_TEXT)
    assert session.statistics().total_columns == 5


def test_unexpected_upload_error_does_not_block_next_upload(schema):
    class FlakyBulk(MemoryBulkJobService):
        async def close_job(self, job_id: str) -> None:
            if "close" not in self.calls:
                self.calls.append("close")
                raise RuntimeError("connection reset")
            await super().close_job(job_id)

    bulk = FlakyBulk(states=["JobComplete"], processed=2)
    session = UploadSession(schema=schema, bulk=bulk, sleep=RecordingSleep())
    session.load_text(CSV_TEXT)
    asyncio.run(session.select_object("Contact"))

    with pytest.raises(RuntimeError):
        asyncio.run(session.upload())
    outcome = asyncio.run(session.upload())

    assert outcome.phase == JobPhase.COMPLETED
