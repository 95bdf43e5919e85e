"""
Vigie configuration with hybrid YAML + ENV support.

Components:
- Endpoint registry: failover thresholds and restoration probe
- Transport: direct or relayed JSON-RPC calls with bounded timeouts
- Polling: block/tx subscription timing
- Persistence: last-known-good endpoint storage

Priority: Environment variables > YAML config > Pydantic defaults
"""

import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_RPC_ENDPOINTS = [
    "https://node-palmito.tellorlayer.com/rpc",
    "https://mainnet.tellorlayer.com/rpc",
]


class RegistryConfig(BaseModel):
    """Endpoint health thresholds and restoration probe timing."""

    degraded_threshold: int = Field(default=3, ge=1, le=100)
    unavailable_threshold: int = Field(default=6, ge=2, le=1000)
    probe_interval: float = Field(default=10.0, ge=0.1, le=600.0)
    probe_reset_after: float = Field(default=30.0, ge=0.0, le=3600.0)

    @model_validator(mode="after")
    def check_thresholds(self) -> "RegistryConfig":
        """Unavailable threshold must sit above the degraded one."""
        if self.unavailable_threshold <= self.degraded_threshold:
            raise ValueError(
                "unavailable_threshold must be greater than degraded_threshold"
            )
        return self


class TransportConfig(BaseModel):
    """Transport routing and timeouts."""

    mode: str = Field(default="direct")
    relay_url: Optional[str] = Field(default=None)
    request_timeout: float = Field(default=5.0, ge=0.1, le=120.0)

    @field_validator("mode")
    @classmethod
    def validate_mode(cls, v: str) -> str:
        """Validate transport mode."""
        allowed = ["direct", "relay", "auto"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"Invalid transport mode. Must be one of: {allowed}")
        return v_lower


class PollingConfig(BaseModel):
    """Polling subscription configuration."""

    interval: float = Field(default=6.0, ge=0.01, le=3600.0)
    max_txs_per_block: int = Field(default=50, ge=1, le=10000)


class PersistenceConfig(BaseModel):
    """Last-known-good endpoint storage."""

    backend: str = Field(default="file")
    file_path: str = Field(default="~/.vigie/endpoints.json")
    key: str = Field(default="RPC_ADDRESS")

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Validate persistence backend."""
        allowed = ["memory", "file", "redis"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"Invalid persistence backend. Must be one of: {allowed}")
        return v_lower

    @field_validator("file_path")
    @classmethod
    def expand_file_path(cls, v: str) -> str:
        """Expand home directory in file path."""
        return os.path.expanduser(v)


class RedisConfig(BaseModel):
    """Redis configuration for endpoint persistence."""

    host: str = Field(default="localhost")
    port: int = Field(default=6379, ge=1, le=65535)
    db: int = Field(default=0, ge=0, le=15)
    password: Optional[str] = Field(default=None)
    socket_timeout: float = Field(default=2.0, ge=0.1, le=60.0)


class VigieConfig(BaseSettings):
    """
    Vigie configuration schema.

    The relay app (api_host/api_port) is optional; library users only need
    the endpoint, transport, polling and persistence sections.
    """

    model_config = SettingsConfigDict(
        env_prefix="VIGIE_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="allow",
    )

    rpc_endpoints: List[str] = Field(
        default_factory=lambda: list(DEFAULT_RPC_ENDPOINTS),
        description="Static candidate endpoints in priority order",
    )
    user_endpoint: Optional[str] = Field(
        default=None,
        description="Explicitly supplied endpoint, always tried first",
    )

    # Relay app (same-origin proxy)
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8770, ge=1024, le=65535)

    # Logging
    log_level: str = Field(default="info")
    log_dir: Optional[str] = Field(default=None)

    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    transport: TransportConfig = Field(default_factory=TransportConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)
    redis: RedisConfig = Field(default_factory=RedisConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        """Environment wins over values loaded from YAML (passed as init kwargs)."""
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @field_validator("rpc_endpoints")
    @classmethod
    def validate_endpoints(cls, v: List[str]) -> List[str]:
        """Strip blanks and trailing slashes, keep order."""
        cleaned = [e.strip().rstrip("/") for e in v if e and e.strip()]
        if not cleaned:
            raise ValueError("At least one RPC endpoint must be configured")
        return cleaned

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = ["debug", "info", "warning", "error", "critical"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"Invalid log_level. Must be one of: {allowed}")
        return v_lower


def load_config(config_file: Optional[str] = None) -> VigieConfig:
    """
    Load configuration from YAML files.

    Priority: Environment variables > environment-specific YAML > default YAML

    Args:
        config_file: Optional YAML filename override

    Returns:
        VigieConfig instance
    """
    env = os.getenv("ENV", "production")

    config_map = {
        "production": "production.yaml",
        "development": "development.yaml",
        "test": "test.yaml",
    }

    current_file = Path(__file__).resolve()
    project_root = current_file.parent.parent.parent.parent
    config_dir = Path(os.getenv("VIGIE_CONFIG_DIR", project_root / "config"))

    default_config_path = config_dir / "default.yaml"
    merged_config = {}

    if default_config_path.exists():
        with open(default_config_path, "r") as f:
            loaded = yaml.safe_load(f)
            if loaded:
                merged_config = loaded

    if config_file is None:
        config_file = os.getenv("VIGIE_CONFIG")
        if not config_file:
            config_file = config_map.get(env, "production.yaml")

    env_config_path = config_dir / config_file

    if env_config_path.exists():
        with open(env_config_path, "r") as f:
            loaded = yaml.safe_load(f)
            if loaded:
                merged_config.update(loaded)

    return VigieConfig(**merged_config)


# Global settings instance
_settings: Optional[VigieConfig] = None


def get_settings() -> VigieConfig:
    """
    Get singleton settings instance.

    Returns:
        VigieConfig instance
    """
    global _settings
    if _settings is None:
        _settings = load_config()
    return _settings
