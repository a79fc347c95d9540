"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class SalesforceConfig(BaseSettings):
    """Target org REST endpoint configuration."""

    model_config = {"env_prefix": "RECORDBRIDGE_SF_"}

    instance_url: str = ""
    api_version: str = "v58.0"
    timeout: float = 30.0


class BulkJobConfig(BaseSettings):
    """Bulk ingest polling policy."""

    model_config = {"env_prefix": "RECORDBRIDGE_BULK_"}

    poll_interval: float = 2.0  # seconds between status checks
    max_poll_attempts: int = 30
    default_operation: Literal["insert", "update", "upsert", "delete"] = "insert"


class MatchingConfig(BaseSettings):
    """Column matching and field suggestion tuning."""

    model_config = {"env_prefix": "RECORDBRIDGE_MATCH_"}

    suggestion_threshold: float = 0.6
    sample_size: int = 20
    custom_field_suffix: str = "__c"


class RedisConfig(BaseSettings):
    """Redis describe-cache configuration."""

    model_config = {"env_prefix": "RECORDBRIDGE_REDIS_"}

    enabled: bool = False
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    describe_ttl: int = 300  # 5 minutes


class AppSettings(BaseSettings):
    """Root application settings aggregating all sub-configs."""

    model_config = {"env_prefix": "RECORDBRIDGE_"}

    environment: Literal["dev", "uat", "prod"] = "dev"
    log_level: str = "INFO"

    salesforce: SalesforceConfig = SalesforceConfig()
    bulk: BulkJobConfig = BulkJobConfig()
    matching: MatchingConfig = MatchingConfig()
    redis: RedisConfig = RedisConfig()
