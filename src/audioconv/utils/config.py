from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "AUDIOCONV_"

# Unprefixed names accepted for compatibility with older deployments.
_LEGACY_ENV_NAMES: dict[str, str] = {
    "REDIS_URL": "redis_url",
    "PORT": "port",
    "CONCURRENCY": "concurrency",
    "VALID_URL_DOMAINS": "valid_url_domains",
}


class ServiceConfig(BaseModel):
    redis_url: str = "redis://localhost:6379/0"
    queue_name: str = "convert"
    concurrency: int = Field(10, ge=1)
    host: str = "0.0.0.0"
    port: int = Field(3000, ge=1, le=65535)
    valid_url_domains: tuple[str, ...] = ("*",)
    ffmpeg_binary: str = "ffmpeg"
    ffprobe_binary: str = "ffprobe"
    transcode_timeout_seconds: float = Field(600.0, gt=0.0)
    probe_timeout_seconds: float = Field(60.0, gt=0.0)
    http_connect_timeout: float = Field(10.0, gt=0.0)
    http_read_timeout: float = Field(60.0, gt=0.0)
    max_retries: int = Field(0, ge=0)
    retry_delay_seconds: int = Field(30, ge=0)
    staging_dir: Path | None = None
    log_level: str = "INFO"
    immediate: bool = False

    @field_validator("valid_url_domains", mode="before")
    @classmethod
    def _split_domains(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = [item.strip() for item in value.split(",")]
        if isinstance(value, (list, tuple)):
            patterns = tuple(item for item in value if item)
            return patterns or ("*",)
        return value

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized = value.upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value!r}")
        return normalized

    @property
    def http_timeout(self) -> tuple[float, float]:
        return (self.http_connect_timeout, self.http_read_timeout)


def load_service_config(path: Path | None = None, environ: Mapping[str, str] | None = None) -> ServiceConfig:
    """Build the service configuration.

    Values come from the optional YAML/JSON file first, then from the
    environment (``AUDIOCONV_<FIELD>`` and the legacy unprefixed names), which
    win over the file.
    """

    data: dict[str, Any] = _load_config_data(path) if path is not None else {}
    data.update(_env_overrides(os.environ if environ is None else environ))
    return ServiceConfig.model_validate(data)


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for env_name, field_name in _LEGACY_ENV_NAMES.items():
        if environ.get(env_name):
            overrides[field_name] = environ[env_name]

    for field_name in ServiceConfig.model_fields:
        env_name = f"{ENV_PREFIX}{field_name.upper()}"
        if env_name in environ:
            overrides[field_name] = environ[env_name]
    return overrides


def _load_config_data(path: Path) -> dict:
    if path.suffix.lower() in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as handle:
            return yaml.safe_load(handle) or {}

    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)
