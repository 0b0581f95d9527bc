"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (KITSUNEID__CATALOG__PRIMARY=jikan)
  2. kitsuneid.yaml         (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional. Upstream base URLs and the render proxy key are
deploy-time values and only ever come from here.
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

_DEFAULT_CONFIG_DIR = platformdirs.user_config_dir("kitsuneid")


def _find_config_file() -> str | None:
    """Return the path of the first kitsuneid.yaml found, or None."""
    candidates = [
        Path("kitsuneid.yaml"),
        Path(_DEFAULT_CONFIG_DIR) / "kitsuneid.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 3000


class FetcherSettings(BaseModel):
    timeout_seconds: float = 20.0
    render_timeout_seconds: float = 45.0
    post_timeout_seconds: float = 15.0
    max_redirects: int = 5
    user_agent: str = (
        "Mozilla/5.0 (Linux; Android 11; Redmi Note 10) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/122.0.0.0 Mobile Safari/537.36"
    )
    # Must contain a "{url}" placeholder, e.g.
    # "https://api.scraperapi.com/?api_key=KEY&render=true&url={url}"
    render_proxy_url: str | None = None


class OtakudesuSettings(BaseModel):
    base_url: str = "https://otakudesu.cloud"
    # Route every request through the render proxy instead of using it as a fallback.
    always_render: bool = False


class JikanSettings(BaseModel):
    base_url: str = "https://api.jikan.moe/v4"
    requests_per_second: float = 3.0
    # Extra spacing on top of 1/rps so bursts stay below the published quota.
    safety_margin_seconds: float = 0.007

    @property
    def min_interval_seconds(self) -> float:
        return 1.0 / self.requests_per_second + self.safety_margin_seconds


class CatalogSettings(BaseModel):
    primary: Literal["otakudesu", "jikan"] = "otakudesu"
    jikan_fallback: bool = True


class TtlSettings(BaseModel):
    ongoing: int = 300
    complete: int = 1800
    search: int = 300
    schedule: int = 3600
    detail_ongoing: int = 1800
    detail_complete: int = 6 * 3600
    episode: int = 900
    server: int = 600
    metadata: int = 24 * 3600


class CacheSettings(BaseModel):
    sweep_interval_seconds: int = 300
    ttl: TtlSettings = TtlSettings()


class ResolverSettings(BaseModel):
    min_score: float = 20.0


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: KITSUNEID__SERVER__PORT=9090
        env_prefix="KITSUNEID__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    server: ServerSettings = ServerSettings()
    fetcher: FetcherSettings = FetcherSettings()
    otakudesu: OtakudesuSettings = OtakudesuSettings()
    jikan: JikanSettings = JikanSettings()
    catalog: CatalogSettings = CatalogSettings()
    cache: CacheSettings = CacheSettings()
    resolver: ResolverSettings = ResolverSettings()
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
            # dotenv and file secrets intentionally excluded
        )
