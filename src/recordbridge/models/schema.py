"""Remote record schema models: objects, fields, and proposed new fields."""

from __future__ import annotations

from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, Field


class FieldType(StrEnum):
    TEXT = "Text"
    LONG_TEXT_AREA = "LongTextArea"
    TEXT_AREA = "TextArea"
    EMAIL = "Email"
    PHONE = "Phone"
    URL = "Url"
    CHECKBOX = "Checkbox"
    NUMBER = "Number"
    CURRENCY = "Currency"
    PERCENT = "Percent"
    DATE = "Date"
    DATE_TIME = "DateTime"
    PICKLIST = "Picklist"
    REFERENCE = "Reference"
    ID = "Id"
    OTHER = "Other"

    @classmethod
    def from_remote(cls, value: str) -> "FieldType":
        """Map a describe-style type string (``string``, ``boolean`` ...) to a FieldType."""
        key = (value or "").replace("_", "").lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        return _REMOTE_ALIASES.get(key, cls.OTHER)


_REMOTE_ALIASES: dict[str, FieldType] = {
    "string": FieldType.TEXT,
    "encryptedstring": FieldType.TEXT,
    "combobox": FieldType.PICKLIST,
    "multipicklist": FieldType.PICKLIST,
    "boolean": FieldType.CHECKBOX,
    "double": FieldType.NUMBER,
    "int": FieldType.NUMBER,
    "long": FieldType.NUMBER,
}


class TargetField(BaseModel):
    """A field of the remote record schema. Read-only to the core."""

    model_config = {"frozen": True}

    name: str
    label: str = ""
    type: FieldType = FieldType.TEXT
    required: bool = False
    createable: bool = True
    updateable: bool = True
    length: Optional[int] = None
    picklist_values: list[str] = Field(default_factory=list)

    @property
    def writable(self) -> bool:
        return self.createable or self.updateable


class SObjectSummary(BaseModel):
    """An object that can be targeted by a bulk job."""

    name: str
    label: str = ""
    createable: bool = True
    queryable: bool = True


class InferredType(BaseModel):
    """Result of sampling a column for a target field type."""

    type: FieldType
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None


class FieldSuggestion(BaseModel):
    """Proposed custom field for an unmapped CSV column."""

    csv_header: str
    developer_name: str
    label: str
    type: FieldType = FieldType.TEXT
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    picklist_values: list[str] = Field(default_factory=list)
    required: bool = False  # suggestions are never required


class FieldCreationResult(BaseModel):
    """Outcome of one create-field call within a batch."""

    suggestion: FieldSuggestion
    ok: bool
    error: str = ""
