"""Settings for the demo, read from the environment and an optional .env file."""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DemoSettings(BaseSettings):
    """Defaults for the kNN classification demo.

    Every field can be overridden with a ``KNN_KDTREE_`` prefixed variable,
    e.g. ``KNN_KDTREE_K=7``.
    """

    model_config = SettingsConfigDict(
        env_prefix="KNN_KDTREE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    seed: int = Field(19)
    clusters: int = Field(3, ge=1, le=8)
    points_per_cluster: int = Field(30, ge=1)
    spread: float = Field(0.08, gt=0.0)
    k: int = Field(5, ge=1)
    grid_resolution: int = Field(60, ge=2)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field("INFO")

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value):
        return value.upper() if isinstance(value, str) else value


@lru_cache(maxsize=1)
def get_settings() -> DemoSettings:
    return DemoSettings()


__all__ = ["DemoSettings", "get_settings"]
