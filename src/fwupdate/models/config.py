"""Configuration model and loader for the firmware update controller."""

import json
import logging
import os
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

DEFAULT_CONFIG_PATH = Path("./config/fwupdate.json")
DEVICE_URL_ENV = "FWUPDATE_DEVICE_URL"


class ConfigError(ValueError):
    """Raised when a configuration file cannot be read or is invalid."""


class UpdaterConfig(BaseModel):
    """Settings consumed by the validator, transport and reconnect poller."""

    device_url: str = Field(
        "http://192.168.4.1",
        pattern=r"^https?://.+",
        description="Base URL of the device web server",
    )
    upload_path: str = Field("/api/firmware/upload", pattern=r"^/.*$")
    health_path: str = Field("/api/health/status", pattern=r"^/.*$")
    accepted_extension: str = Field(".bin", min_length=1)
    max_image_size: int = Field(2 * 1024 * 1024, gt=0, description="Bytes (default 2 MiB)")
    upload_timeout: float = Field(180.0, gt=0, description="Overall upload ceiling in seconds")
    upload_chunk_size: int = Field(16 * 1024, gt=0, description="Body chunk size for progress granularity")
    reconnect_max_attempts: int = Field(20, ge=1)
    reconnect_attempt_timeout: float = Field(2.5, gt=0)
    reconnect_interval: float = Field(3.0, ge=0)
    reconnect_initial_delay: Optional[float] = Field(
        None, ge=0, description="Delay before the first probe (defaults to reconnect_interval)"
    )

    @field_validator("device_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("accepted_extension")
    @classmethod
    def normalize_extension(cls, v: str) -> str:
        """Store the extension lower-cased with a leading dot."""
        v = v.strip().lower()
        return v if v.startswith(".") else f".{v}"

    @model_validator(mode="after")
    def default_initial_delay(self) -> "UpdaterConfig":
        if self.reconnect_initial_delay is None:
            self.reconnect_initial_delay = self.reconnect_interval
        return self

    @property
    def upload_url(self) -> str:
        return f"{self.device_url}{self.upload_path}"

    @property
    def health_url(self) -> str:
        return f"{self.device_url}{self.health_path}"


def load_config(path: Optional[Union[str, Path]] = None, **overrides) -> UpdaterConfig:
    """Load configuration from a JSON file, environment and keyword overrides.

    Precedence (lowest to highest): defaults, JSON file, FWUPDATE_DEVICE_URL,
    keyword overrides. ``None`` overrides are ignored.

    Args:
        path: JSON file path (default ./config/fwupdate.json; a missing default
              file is not an error)
        **overrides: Field values that win over every other source

    Returns:
        Validated UpdaterConfig

    Raises:
        ConfigError: If the file is unreadable, not a JSON object, or values fail validation
    """
    logger = logging.getLogger("fwupdate.config")
    data: dict = {}

    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to read config file {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {config_path} must contain a JSON object")
        logger.info(f"Loaded config from {config_path}")
    elif path is not None:
        raise ConfigError(f"Config file not found: {config_path}")

    env_url = os.getenv(DEVICE_URL_ENV)
    if env_url and env_url.strip():
        data["device_url"] = env_url.strip()

    data.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return UpdaterConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
