"""
Configuration management for corsgate using Pydantic.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Setup Logging ---
log = logging.getLogger(__name__)

# --- Nested Configuration Models ---


class FetcherConfig(BaseModel):
    """Outgoing HTTP configuration."""

    timeout: float = Field(default=30.0, description="Total upstream request timeout in seconds.")
    user_agent: str = Field(
        default="corsgate/0.1.0 (+https://github.com/corsgate/corsgate)",
        description="User-Agent sent on extraction fetches.",
    )
    max_redirects: int = Field(default=10, description="Maximum redirects followed per fetch.")

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v


class CredentialRuleConfig(BaseModel):
    """A host substring mapped to the header it should receive."""

    host: str = Field(description="Substring matched against the target host.")
    header: str = Field(description="Header name set on the outgoing request.")
    value: SecretStr = Field(description="Header value.")

    @field_validator("host", "header")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class CredentialsConfig(BaseModel):
    """Deployment secrets consulted by the credential injector."""

    riot_api_token: Optional[SecretStr] = Field(
        default=None, description="Sent as X-Riot-Token to api.riotgames.com."
    )
    wimmmr_user_agent: Optional[SecretStr] = Field(
        default=None, description="Sent as User-Agent to whatismymmr.com."
    )
    extra_rules: List[CredentialRuleConfig] = Field(
        default_factory=list, description="Additional rules, checked after the built-in ones."
    )


class MonitoringConfig(BaseModel):
    """Configuration for logging and metrics."""

    log_level: str = Field(default="INFO", description="Logging level (e.g., DEBUG, INFO, WARNING).")
    log_file: str | None = Field(
        default=None,
        description="Path to log file. If None, logs to console.",
    )
    prometheus_port: int | None = Field(
        default=None,
        description="Port for Prometheus metrics exporter. None to disable.",
    )

    @field_validator("log_file", mode="before")
    @classmethod
    def create_parent_dir(cls, v: str | Path | None) -> str | None:
        if v is None:
            return None
        path = Path(v)
        path.parent.mkdir(parents=True, exist_ok=True)
        return str(path)


class ServerConfig(BaseModel):
    host: str = Field(default="127.0.0.1", description="Interface uvicorn binds to.")
    port: int = Field(default=8787, description="Port uvicorn listens on.")


# --- Main Configuration Class ---


class Config(BaseSettings):
    project_name: str = "corsgate"
    version: str = "0.1.0"
    fetcher: FetcherConfig = Field(default_factory=FetcherConfig)
    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    model_config = SettingsConfigDict(env_prefix="CORSGATE_", env_nested_delimiter="__", case_sensitive=False)

    @classmethod
    def from_yaml(cls, path: Path) -> Config:
        log.debug("Loading configuration from YAML file: %s", path)
        if not path.is_file():
            raise FileNotFoundError(f"Configuration file not found or is not a file: {path}")
        with open(path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
        if not yaml_data:
            log.warning("Configuration file is empty: %s. Using default settings.", path)
            return cls()
        # Init kwargs win over environment variables.
        return cls(**yaml_data)


def find_config_file() -> Path | None:
    current_dir = Path.cwd()
    for path in (current_dir / "corsgate.yaml", current_dir / "corsgate.yml"):
        if path.exists():
            return path
    return None


def load_config(path: Path | str | None = None) -> Config:
    """Build the process-wide configuration once, at startup."""
    if path is not None:
        return Config.from_yaml(Path(path))

    config_path = find_config_file()
    if config_path:
        log.info("Loading configuration from: %s", config_path)
        return Config.from_yaml(config_path)

    log.info("No config file found. Using defaults and environment.")
    return Config()
