# config.py

"""Application configuration utilities.

Values are primarily loaded from ``config.json`` and may be overridden by
environment variables. The :func:`get_settings` helper merges the two sources
and caches the result.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings merged from JSON and environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite+aiosqlite:///./orders.db"
    create_schema: bool = True
    secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    staff_roles: list[str] = ["admin", "staff"]
    max_conn_per_ip: int = 20
    live_queue_max: int = 100
    heartbeat_interval_secs: int = 15
    status_lock_retries: int = 3
    log_level: str = "INFO"
    cors_origins: list[str] = []


# Cached singleton to avoid repeated file reads
@lru_cache
def get_settings() -> Settings:
    """Return merged settings with environment variable precedence.

    The configuration is read from ``config.json`` located alongside this file
    when it exists and fed into :class:`Settings`. Environment variables
    override any values from the JSON file.
    """

    config_path = Path(__file__).with_name("config.json")
    data = json.loads(config_path.read_text()) if config_path.exists() else {}
    env_override = {
        k.lower(): v
        for k, v in os.environ.items()
        if k.lower() in Settings.model_fields
    }
    merged = {**data, **env_override}
    return Settings(**merged)
