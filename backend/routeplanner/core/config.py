from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    debug: bool = Field(False, alias="ROUTEPLANNER_DEBUG")

    osrm_base_url: str = Field(
        "https://router.project-osrm.org", alias="ROUTEPLANNER_OSRM_BASE_URL"
    )
    osrm_profile: str = Field("driving", alias="ROUTEPLANNER_OSRM_PROFILE")
    osrm_geometries: Literal["geojson", "polyline"] = Field(
        "geojson", alias="ROUTEPLANNER_OSRM_GEOMETRIES"
    )

    routing_segment_timeout: float = Field(
        8.0, gt=0, alias="ROUTEPLANNER_ROUTING_SEGMENT_TIMEOUT"
    )
    routing_request_delay: float = Field(
        0.1, ge=0, alias="ROUTEPLANNER_ROUTING_REQUEST_DELAY"
    )
    routing_max_retries: int = Field(1, ge=0, alias="ROUTEPLANNER_ROUTING_MAX_RETRIES")
    routing_backoff_seconds: float = Field(
        0.25, ge=0, alias="ROUTEPLANNER_ROUTING_BACKOFF_SECONDS"
    )
    routing_fallback_speed_kmh: float = Field(
        30.0, gt=0, alias="ROUTEPLANNER_ROUTING_FALLBACK_SPEED_KMH"
    )

    # Segment cache, 0 TTL disables it
    routing_cache_ttl: float = Field(300.0, ge=0, alias="ROUTEPLANNER_ROUTING_CACHE_TTL")
    routing_cache_size: int = Field(100, ge=1, alias="ROUTEPLANNER_ROUTING_CACHE_SIZE")

    estimate_stop_minutes: float = Field(
        5.0, ge=0, alias="ROUTEPLANNER_ESTIMATE_STOP_MINUTES"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )

    @field_validator("osrm_base_url", mode="before")
    def _strip_base_url(cls, value: str) -> str:
        """Drop trailing slashes so endpoint paths can be appended directly."""
        if isinstance(value, str):
            return value.strip().rstrip("/")
        return value

    @field_validator("osrm_geometries", "osrm_profile", mode="before")
    def _normalize_choice(cls, value: str) -> str:
        if isinstance(value, str):
            return value.strip().lower()
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()  # type: ignore[call-arg]
