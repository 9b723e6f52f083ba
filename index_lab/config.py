"""
Configuration settings for Index Lab.

Uses Pydantic Settings to load environment variables for the database
connection, logging, data-generation targets and benchmark defaults. Only the
CLI calls `get_settings()`; every component receives the values it needs
through its constructor.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGED_SCRIPTS_DIR = Path(__file__).parent / "sql"


class Settings(BaseSettings):
    # Database
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("index_lab", alias="DB_NAME")
    db_maintenance_name: str = Field("postgres", alias="DB_MAINTENANCE_NAME")
    db_statement_timeout_ms: int = Field(300_000, ge=0, alias="DB_STATEMENT_TIMEOUT_MS")
    connect_attempts: int = Field(3, ge=1, alias="CONNECT_ATTEMPTS")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Data generation
    batch_size: int = Field(10_000, ge=1, alias="BATCH_SIZE")
    progress_interval: int = Field(100_000, ge=1, alias="PROGRESS_INTERVAL")
    department_count: int = Field(50, ge=0, alias="DEPARTMENT_COUNT")
    user_count: int = Field(1_000_000, ge=0, alias="USER_COUNT")
    order_count: int = Field(2_000_000, ge=0, alias="ORDER_COUNT")
    batch_failure_policy: Literal["skip", "abort"] = Field("skip", alias="BATCH_FAILURE_POLICY")

    # Benchmarks
    bench_iterations: int = Field(5, ge=1, alias="BENCH_ITERATIONS")
    results_dir: Path = Field(Path("results"), alias="RESULTS_DIR")
    scripts_dir: Path = Field(PACKAGED_SCRIPTS_DIR, alias="SCRIPTS_DIR")

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


__all__ = ["PACKAGED_SCRIPTS_DIR", "Settings", "get_settings"]
