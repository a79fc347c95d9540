"""Salesforce REST + Bulk API 2.0 backend implementing ISchemaService and IBulkJobService.

Credentials are passed in by the caller; token acquisition and refresh happen
elsewhere.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from recordbridge.core.exceptions import SchemaError, TransportError
from recordbridge.models.bulk import BulkJob, JobResults
from recordbridge.models.schema import (
    FieldSuggestion,
    FieldType,
    SObjectSummary,
    TargetField,
)

logger = logging.getLogger(__name__)


def _error_message(resp: httpx.Response) -> str:
    """Best-effort message from a Salesforce error body."""
    try:
        body = resp.json()
    except ValueError:
        return f"API request failed: {resp.status_code}"
    if isinstance(body, list) and body and isinstance(body[0], dict):
        body = body[0]
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"API request failed: {resp.status_code}"


def _field_from_describe(raw: dict[str, Any]) -> TargetField:
    length = raw.get("length") or None
    return TargetField(
        name=raw["name"],
        label=raw.get("label", ""),
        type=FieldType.from_remote(raw.get("type", "")),
        required=not raw.get("nillable", True) and not raw.get("defaultedOnCreate", False),
        createable=raw.get("createable", False),
        updateable=raw.get("updateable", False),
        length=length,
        picklist_values=[
            p["value"] if isinstance(p, dict) else str(p)
            for p in raw.get("picklistValues") or []
        ],
    )


def custom_field_payload(object_name: str, suggestion: FieldSuggestion) -> dict[str, Any]:
    """Tooling API CustomField body for a suggestion."""
    payload: dict[str, Any] = {
        "DeveloperName": suggestion.developer_name,
        "Label": suggestion.label,
        "TableEnumOrId": object_name,
        "Type": str(suggestion.type),
        "Required": suggestion.required,
    }
    if suggestion.length is not None:
        payload["Length"] = suggestion.length
    if suggestion.precision is not None:
        payload["Precision"] = suggestion.precision
        payload["Scale"] = suggestion.scale or 0
    if suggestion.type == FieldType.PICKLIST:
        payload["Metadata"] = {
            "values": [
                {"fullName": value, "default": False, "label": value}
                for value in suggestion.picklist_values
            ]
        }
    return payload


class SalesforceClient:
    """Async Salesforce client for describe, custom field creation, and bulk ingest."""

    def __init__(
        self,
        instance_url: str,
        access_token: str,
        api_version: str = "v58.0",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not instance_url:
            raise ValueError("instance_url is required")
        self._base_url = f"{instance_url.rstrip('/')}/services/data/{api_version}"
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "SalesforceClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # -------------------------------------------------------
    # Transport
    # -------------------------------------------------------

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        return await self._client.request(method, path, **kwargs)

    async def _schema_request(self, step: str, method: str, path: str, **kwargs: Any) -> Any:
        try:
            resp = await self._send(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Salesforce %s %s failed: %s", method, path, exc)
            raise SchemaError(f"{step} failed: {exc}") from exc
        if resp.status_code >= 400:
            message = _error_message(resp)
            logger.error("Salesforce %s %s -> %s: %s", method, path, resp.status_code, message)
            raise SchemaError(f"{step} failed: {message}")
        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as exc:
            logger.error("Salesforce %s %s returned a non-JSON body", method, path)
            raise SchemaError(f"{step} failed: malformed response: {exc}") from exc

    async def _bulk_request(self, step: str, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = await self._send(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Salesforce %s %s failed: %s", method, path, exc)
            raise TransportError(step, str(exc)) from exc
        if resp.status_code >= 400:
            message = _error_message(resp)
            logger.error("Salesforce %s %s -> %s: %s", method, path, resp.status_code, message)
            raise TransportError(step, message)
        return resp

    # -------------------------------------------------------
    # ISchemaService
    # -------------------------------------------------------

    async def list_objects(self) -> list[SObjectSummary]:
        """Createable, queryable objects (history tables excluded), sorted by label."""
        data = await self._schema_request("Fetch objects", "GET", "/sobjects/")
        objects = [
            SObjectSummary(
                name=raw["name"],
                label=raw.get("label", raw["name"]),
                createable=raw.get("createable", False),
                queryable=raw.get("queryable", False),
            )
            for raw in data.get("sobjects", [])
        ]
        objects = [
            o for o in objects
            if o.createable and o.queryable and not o.name.endswith("__History")
        ]
        return sorted(objects, key=lambda o: o.label.lower())

    async def list_fields(self, object_name: str) -> list[TargetField]:
        data = await self._schema_request(
            "Fetch object metadata", "GET", f"/sobjects/{object_name}/describe/"
        )
        return [_field_from_describe(raw) for raw in data.get("fields", [])]

    async def create_field(self, object_name: str, suggestion: FieldSuggestion) -> None:
        await self._schema_request(
            "Create custom field",
            "POST",
            "/tooling/sobjects/CustomField/",
            json=custom_field_payload(object_name, suggestion),
        )

    # -------------------------------------------------------
    # IBulkJobService
    # -------------------------------------------------------

    async def submit_job(self, object_name: str, operation: str = "insert") -> str:
        resp = await self._bulk_request(
            "submit",
            "POST",
            "/jobs/ingest",
            json={
                "object": object_name,
                "operation": operation,
                "contentType": "CSV",
                "lineEnding": "LF",
            },
        )
        try:
            return resp.json()["id"]
        except (ValueError, KeyError) as exc:
            raise TransportError("submit", f"malformed job response: {exc}") from exc

    async def upload_payload(self, job_id: str, csv_text: str) -> None:
        await self._bulk_request(
            "upload",
            "PUT",
            f"/jobs/ingest/{job_id}/batches",
            content=csv_text.encode("utf-8"),
            headers={"Content-Type": "text/csv"},
        )

    async def close_job(self, job_id: str) -> None:
        await self._bulk_request(
            "close", "PATCH", f"/jobs/ingest/{job_id}", json={"state": "UploadComplete"}
        )

    async def poll_job(self, job_id: str) -> BulkJob:
        resp = await self._bulk_request("poll", "GET", f"/jobs/ingest/{job_id}")
        try:
            data = resp.json()
        except ValueError as exc:
            raise TransportError("poll", f"malformed status response: {exc}") from exc
        return BulkJob(
            id=data.get("id", job_id),
            state=data.get("state", ""),
            object=data.get("object", ""),
            operation=data.get("operation", ""),
            number_records_processed=data.get("numberRecordsProcessed") or 0,
            number_records_failed=data.get("numberRecordsFailed") or 0,
            error_message=data.get("errorMessage") or "",
        )

    async def _result_text(self, path: str) -> str:
        try:
            resp = await self._send("GET", path)
        except httpx.HTTPError as exc:
            logger.error("Salesforce GET %s failed: %s", path, exc)
            raise TransportError("results", str(exc)) from exc
        if resp.status_code >= 400:
            logger.warning("Salesforce GET %s -> %s; treating results as empty", path, resp.status_code)
            return ""
        return resp.text

    async def fetch_results(self, job_id: str) -> JobResults:
        successful, failed = await asyncio.gather(
            self._result_text(f"/jobs/ingest/{job_id}/successfulResults"),
            self._result_text(f"/jobs/ingest/{job_id}/failedResults"),
        )
        return JobResults(successful=successful, failed=failed)
