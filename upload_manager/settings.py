from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, validator

from upload_manager.exceptions import ConfigurationError

# Load .env file from project root
_env_path = Path(__file__).parent.parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path)


def _strip_prefix(value: Any) -> str:
    if value is None:
        return ""
    return str(value).replace("\\", "/").strip("/")


class S3Settings(BaseModel):
    bucket: str
    prefix: str = ""
    region: str | None = None
    profile: str | None = None
    endpoint_url: str | None = None
    # Base for public object URLs (CDN, custom domain). Path-style endpoint URLs otherwise.
    public_url: str | None = None
    acl: str = "public-read"
    storage_class: str = "REDUCED_REDUNDANCY"

    @validator("bucket")
    def _bucket_not_blank(cls, value: str) -> str:  # noqa: D401
        value = value.rstrip("/")
        if not value:
            raise ValueError("bucket must not be empty")
        return value

    @validator("prefix", pre=True)
    def _normalize_prefix(cls, value: Any) -> str:  # noqa: D401
        return _strip_prefix(value)


class LocalSettings(BaseModel):
    root: Path
    prefix: str = ""
    base_url: str | None = None

    @validator("prefix", pre=True)
    def _normalize_prefix(cls, value: Any) -> str:  # noqa: D401
        return _strip_prefix(value)


class LoggingSettings(BaseModel):
    level: str = "INFO"
    json_format: bool = False
    log_file: Path | None = None

    @validator("level", pre=True)
    def _upper_level(cls, value: Any) -> str:  # noqa: D401
        if value is None:
            return "INFO"
        return str(value).upper()


class Settings(BaseModel):
    backend: Literal["s3", "local"] = "s3"
    s3: S3Settings | None = None
    local: LocalSettings | None = None
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    # Run gc.collect() once after every upload join.
    reclaim_cycles: bool = False

    @classmethod
    def load(cls, path: Path | None = None) -> "Settings":
        """Load settings from YAML configuration file.

        Args:
            path: Optional path to configuration file. If not provided, uses
                UPLOAD_MANAGER_CONFIG environment variable or defaults to config/default.yaml.

        Returns:
            Settings instance with loaded configuration.

        Raises:
            ConfigurationError: If the file does not exist or its content is invalid.
        """
        config_path = path or Path(os.getenv("UPLOAD_MANAGER_CONFIG", "config/default.yaml"))
        if not config_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {config_path}",
                {"path": str(config_path)},
            )
        with config_path.open("r", encoding="utf-8") as fp:
            payload = yaml.safe_load(fp) or {}
        try:
            return cls(**payload)
        except Exception as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}", {"path": str(config_path)}) from exc


@lru_cache(maxsize=1)
def get_settings(path: str | None = None) -> Settings:
    return Settings.load(Path(path) if path else None)


__all__ = [
    "Settings",
    "S3Settings",
    "LocalSettings",
    "LoggingSettings",
    "get_settings",
]
