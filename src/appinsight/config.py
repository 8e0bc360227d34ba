"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (APPINSIGHT__SERVER__TRANSPORT=streamable-http)
  2. appinsight.yaml        (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional; all fields have sensible defaults. The revenue
cache TTL is deliberately absent: it is a fixed constant in appinsight.cache.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

DESKTOP_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"


def _find_config_file() -> str | None:
    """Return the path of the first appinsight.yaml found, or None."""
    candidates = [
        Path("appinsight.yaml"),
        Path(platformdirs.user_config_dir("appinsight")) / "appinsight.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ServerSettings(BaseModel):
    transport: Literal["stdio", "streamable-http"] = "stdio"
    host: str = "127.0.0.1"
    port: int = 8080


class HttpSettings(BaseModel):
    timeout_seconds: float = 30.0
    user_agent: str = DESKTOP_USER_AGENT


class RevenueSettings(BaseModel):
    base_url: str = "https://app.sensortower.com"


class AppStoreSettings(BaseModel):
    base_url: str = "https://itunes.apple.com"


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: APPINSIGHT__SERVER__PORT=9090
        env_prefix="APPINSIGHT__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    server: ServerSettings = ServerSettings()
    http: HttpSettings = HttpSettings()
    revenue: RevenueSettings = RevenueSettings()
    app_store: AppStoreSettings = AppStoreSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
        )
