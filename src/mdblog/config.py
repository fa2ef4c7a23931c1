"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


CONFIG_FILE = "config.yaml"


class Settings(BaseModel):
    app_name:            str  = "mdblog"
    db_url:              str  = "sqlite:///mdblog.db"
    max_archive_mb:      int  = Field(default=100,  ge=1,  description="Largest accepted ZIP upload in MB")
    max_archive_entries: int  = Field(default=1000, ge=1,  description="Most non-directory entries per ZIP")
    excerpt_length:      int  = Field(default=160,  ge=10, description="Auto-generated excerpt budget in characters")
    preview_limit:       int  = Field(default=10,   ge=0,  description="Valid posts listed by preview")
    export_limit:        int  = Field(default=1000, ge=1,  description="Most posts written by one export")
    overwrite_existing:  bool = Field(default=False, description="Import replaces posts whose slug already exists")
    create_missing_tags: bool = Field(default=True,  description="Import creates tags not yet in the database")
    log_level:           str  = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR)$")

    @property
    def max_archive_bytes(self) -> int:
        return self.max_archive_mb * 1024 * 1024


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then MDBLOG_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping")

    for name in Settings.model_fields:
        if val := os.getenv(f"MDBLOG_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
