"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (PKGDOC__CACHE__DOC_TTL_SECONDS=600)
  2. pkgdoc.yaml            (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional. All fields have defaults.
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

_DEFAULT_DATA_DIR = platformdirs.user_data_dir("pkgdoc")
_DEFAULT_DB_PATH = str(Path(_DEFAULT_DATA_DIR) / "store.db")


def _find_config_file() -> str | None:
    """Return the path of the first pkgdoc.yaml found, or None."""
    candidates = [
        Path("pkgdoc.yaml"),
        Path(platformdirs.user_config_dir("pkgdoc")) / "pkgdoc.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class FetcherSettings(BaseModel):
    request_timeout_seconds: float = 30.0
    connect_timeout_seconds: float = 5.0
    # Upper bound for one whole resolution, all adapter requests included.
    deadline_seconds: float = 60.0
    user_agent: str = "pkgdoc/1.0"
    max_connections: int = 10
    max_keepalive_connections: int = 5


class ServiceSettings(BaseModel):
    github_token: str | None = None
    proxy_url: str = "http://go-get.danga.com/"
    standard_url: str = "https://api.github.com/repos/golang/go/contents/src/"
    standard_ref: str = "master"


class CacheSettings(BaseModel):
    doc_ttl_seconds: int = 3600
    query_ttl_seconds: int = 3600
    tombstone_ttl_seconds: int = 120


class StoreSettings(BaseModel):
    db_path: str = _DEFAULT_DB_PATH


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "text"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: PKGDOC__STORE__DB_PATH=/tmp/x.db
        env_prefix="PKGDOC__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    fetcher: FetcherSettings = FetcherSettings()
    services: ServiceSettings = ServiceSettings()
    cache: CacheSettings = CacheSettings()
    store: StoreSettings = StoreSettings()
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
            # dotenv and file secrets are not read
        )
