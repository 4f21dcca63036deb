"""Configuration loader — reads config.yaml, validates with Pydantic.

Upstream URL and model are required; everything else has defaults matching
the sampling setup the document prompts were tuned against. The loaded
``AppConfig`` is handed to ``create_app`` rather than cached globally.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from mirai_assist.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"
CONFIG_PATH_ENV = "MIRAI_ASSIST_CONFIG"


class SamplingParams(BaseModel):
    """Fixed, low-temperature sampling so output parses as JSON reliably."""

    temperature: float = Field(0.4, ge=0.0, le=2.0)
    top_p: float = Field(0.9, gt=0.0, le=1.0)
    repeat_penalty: float = Field(1.1, gt=0.0)
    num_ctx: int = Field(4096, gt=0)


class UpstreamConfig(BaseModel):
    """The local LLM runtime (Ollama-compatible /api/generate)."""

    upstream_url: str
    model: str
    sampling_params: SamplingParams = SamplingParams()
    timeout_seconds: float = Field(120.0, gt=0.0)

    @field_validator("upstream_url")
    @classmethod
    def must_be_http_url(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"upstream_url must be an http(s) URL, got '{v}'")
        return v.rstrip("/")

    @field_validator("model")
    @classmethod
    def must_name_model(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("model must not be empty")
        return v.strip()


class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = Field(3006, gt=0, lt=65536)
    allowed_origins: list[str] = ["*"]


class AppConfig(BaseModel):
    """Top-level configuration."""

    upstream: UpstreamConfig
    server: ServerConfig = ServerConfig()

    # Serve canned payloads instead of calling the runtime (offline demos).
    simulation: bool = False


def resolve_config_path(path: str | None = None) -> Path:
    """Explicit path, then $MIRAI_ASSIST_CONFIG, then ./config.yaml."""
    return Path(path or os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)


def load_config(path: str | None = None) -> AppConfig:
    """Read the YAML config from disk and validate it.

    Raises FileNotFoundError if the file is absent and ConfigError if it is
    unreadable or fails validation.
    """
    config_file = resolve_config_path(path)
    if not config_file.exists():
        raise FileNotFoundError(f"Config file not found: {config_file.resolve()}")

    try:
        raw = yaml.safe_load(config_file.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Cannot parse {config_file}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"{config_file} must contain a mapping at the top level")

    try:
        config = AppConfig(**raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid config in {config_file}: {e}") from e

    logger.info(
        f"Loaded config: upstream={config.upstream.upstream_url}, "
        f"model={config.upstream.model}, simulation={config.simulation}"
    )
    return config
