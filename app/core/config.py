from __future__ import annotations

import os
from functools import lru_cache
from typing import Literal
from urllib.parse import urlsplit

from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["development", "production", "staging", "test"]
AspectRatioSetting = Literal["16:9", "1:1", "4:5", "4:3"]


def _resolve_env_files() -> tuple[str, ...]:
    env = os.getenv("CONTENTSTUDIO_ENVIRONMENT", "development").lower()
    if env in {"prod", "production"}:
        return (".env", ".env.prod")
    if env in {"dev", "development"}:
        return (".env", ".env.dev")
    if env in {"test", "testing"}:
        return (".env", ".env.test")
    return (".env",)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CONTENTSTUDIO_",
        env_file=_resolve_env_files(),
        env_nested_delimiter="__",
        extra="ignore",
    )

    environment: Environment = "development"
    project_name: str = "Content Studio"
    api_v1_prefix: str = "/api/v1"
    log_level: str = "INFO"
    log_json: bool = False
    rate_limit: str = "60/minute"
    allowed_hosts: list[str] = ["*"]
    cors_origins: list[str] = []
    enable_docs: bool = True

    service_endpoint: str = "https://167aliraza-crewai.hf.space/generate-content"
    service_base_url: str | None = None
    static_path_prefix: str = "/static/"
    request_timeout_seconds: float | None = 300.0
    default_aspect_ratio: AspectRatioSetting = "16:9"

    narrow_breakpoint_px: int = 768
    request_pane_min: float = 0.30
    result_pane_min: float = 0.40
    request_pane_default: float = 0.40

    @property
    def resolved_service_base_url(self) -> str:
        if self.service_base_url:
            return self.service_base_url.rstrip("/")
        parts = urlsplit(self.service_endpoint)
        return f"{parts.scheme}://{parts.netloc}"


@lru_cache
def get_settings() -> Settings:
    return Settings()
