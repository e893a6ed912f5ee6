from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralized configuration loaded from environment variables and .env."""

    # Persistent store
    cache_dir: Path = Field(
        default=Path(".stalecheck"),
        description="Root folder of the hash/metadata store",
        alias="STALECHECK_CACHE_DIR",
    )

    # Staleness policy
    trigger: str = Field(
        default="any",
        description="Default trigger policy (any/always/command/depends/file/missing)",
        alias="STALECHECK_TRIGGER",
    )

    # Parallelism
    jobs: int = Field(default=1, description="Workers for general work such as the missing-import scan", alias="STALECHECK_JOBS")
    jobs_preprocess: int = Field(
        default=1,
        description="Workers for staleness discovery and import processing",
        alias="STALECHECK_JOBS_PREPROCESS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        env_prefix="",
        case_sensitive=False,
        populate_by_name=True,
    )

    def resolve_path(self, path: Optional[Path]) -> Optional[Path]:
        if path is None:
            return None
        return Path(path).expanduser().resolve()
