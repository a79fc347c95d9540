"""Pluggable remote backends behind Protocol interfaces."""

from __future__ import annotations

from recordbridge.backends.cached_schema import CachedSchemaService
from recordbridge.backends.redis_backend import RedisCacheBackend
from recordbridge.backends.salesforce_backend import SalesforceClient
from recordbridge.core.config import AppSettings
from recordbridge.core.protocols import ISchemaService


def create_backends(access_token: str, settings: AppSettings | None = None):
    """Create wired-up remote backends from application settings.

    Returns:
        Tuple of (schema_service, bulk_service, client). ``client`` owns the
        HTTP connection pool and must be closed by the caller.
    """
    if settings is None:
        settings = AppSettings()

    client = SalesforceClient(
        instance_url=settings.salesforce.instance_url,
        access_token=access_token,
        api_version=settings.salesforce.api_version,
        timeout=settings.salesforce.timeout,
    )

    schema: ISchemaService = client
    if settings.redis.enabled:
        schema = CachedSchemaService(
            client,
            RedisCacheBackend.from_config(settings.redis),
            ttl=settings.redis.describe_ttl,
        )

    return schema, client, client
