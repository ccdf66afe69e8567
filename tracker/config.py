"""Settings for the tracker core and its HTTP surface.

All values can be overridden with ``TRACKER_``-prefixed environment
variables or a ``.env`` file, e.g. ``TRACKER_LOG_LEVEL=DEBUG``.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TRACKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    default_project_name: str = "RUMO 12"
    default_project_description: str = "Projeto de infraestrutura ferroviária"
    preferred_sheet: str = "doc"
    cors_origins: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]
    log_level: str = "INFO"
    max_upload_bytes: int = 20 * 1024 * 1024
    # Manual edits couple status and end date; workbook ingestion never does.
    status_rules: bool = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str | None = None) -> None:
    level_name = (level or get_settings().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
