"""
Configuration settings for the ledger indexer.

Uses Pydantic Settings to load environment variables for database connections,
logging, the node endpoint, and the tailer tunables (worker count, batch size,
log cadence, resume lookback).
"""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# PostgreSQL wire protocol caps bind parameters per statement at 65535.
POSTGRES_MAX_QUERY_PARAMS = 65_535

DEFAULT_MARKETPLACE_ADDRESS = (
    "0x975c0bad4ee36fcb48fe447647834b9c09ef44349ff593e90dd816dc5a3eccdc"
)


class Settings(BaseSettings):
    # Database
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("ledger_indexer", alias="DB_NAME")
    db_statement_timeout_ms: int = Field(0, ge=0, alias="DB_STATEMENT_TIMEOUT_MS")
    db_pool_min_size: int = Field(1, ge=1, alias="DB_POOL_MIN_SIZE")
    db_pool_max_size: int = Field(10, ge=1, alias="DB_POOL_MAX_SIZE")

    # Application
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Node
    node_url: str = Field("http://localhost:8080", alias="NODE_URL")
    fetch_timeout_seconds: float = Field(20.0, gt=0, alias="FETCH_TIMEOUT_SECONDS")
    fetch_poll_interval_seconds: float = Field(
        0.5, gt=0, alias="FETCH_POLL_INTERVAL_SECONDS"
    )

    # Tailer
    processor_name: str = Field("marketplace_processor", alias="PROCESSOR_NAME")
    processor_tasks: int = Field(5, ge=1, alias="PROCESSOR_TASKS")
    batch_size: int = Field(500, ge=1, alias="BATCH_SIZE")
    emit_every: int = Field(1_000, ge=0, alias="EMIT_EVERY")
    gap_lookback_versions: int = Field(1_500_000, ge=0, alias="GAP_LOOKBACK_VERSIONS")
    starting_version: Optional[int] = Field(None, ge=0, alias="STARTING_VERSION")
    check_chain_id: bool = Field(True, alias="CHECK_CHAIN_ID")
    chain_id: Optional[int] = Field(None, alias="CHAIN_ID")
    skip_migrations: bool = Field(False, alias="SKIP_MIGRATIONS")
    max_query_params: int = Field(
        POSTGRES_MAX_QUERY_PARAMS, ge=1, alias="MAX_QUERY_PARAMS"
    )

    # Domain
    marketplace_address: str = Field(
        DEFAULT_MARKETPLACE_ADDRESS, alias="MARKETPLACE_ADDRESS"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = [
    "DEFAULT_MARKETPLACE_ADDRESS",
    "POSTGRES_MAX_QUERY_PARAMS",
    "Settings",
    "get_settings",
]
