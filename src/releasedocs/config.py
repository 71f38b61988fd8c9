"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Constructor arguments
  2. Environment variables  (RELEASEDOCS__RELEASES__OUTPUT_DIR=changelog)
  3. YAML file              (``--config``, else releasedocs.yaml in cwd,
                             then the platform config dir)
  4. Hardcoded defaults

The config file is optional: all fields have sensible defaults except the
share ID and API list, which are empty until configured.
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

CONFIG_FILENAME = "releasedocs.yaml"


def _find_config_file() -> str | None:
    """Return the path of the first releasedocs.yaml found, or None."""
    candidates = [
        Path(CONFIG_FILENAME),
        Path(platformdirs.user_config_dir("releasedocs")) / CONFIG_FILENAME,
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ShareSettings(BaseModel):
    api_base_url: str = "https://wiki.example.com/api"
    share_id: str = ""
    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )


class ReleaseSettings(BaseModel):
    output_dir: str = "releases"
    page_prefix: str = "releases"
    nav_group: str = "Product Updates"
    nav_tab: str = "Releases"
    ticket_url_template: str = "https://linear.app/nuweb-group/issue/{ticket}"


class ImageSettings(BaseModel):
    cache_dir: str = "images/releases"
    public_prefix: str = "/images/releases"
    jpeg_quality: int = 90


class FetcherSettings(BaseModel):
    timeout_seconds: float = 10.0
    image_timeout_seconds: float = 30.0


class DocsSettings(BaseModel):
    config_path: str = "docs.json"
    # Link base for endpoint references when an API output has no directory
    reference_dir: str = "api-reference"


class ApiSource(BaseModel):
    name: str
    source: str  # http(s) URL or local file path of the OpenAPI JSON
    output: str  # Local path the (fixed) OpenAPI JSON is written to


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "text"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: RELEASEDOCS__IMAGES__CACHE_DIR=img
        env_prefix="RELEASEDOCS__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    share: ShareSettings = ShareSettings()
    releases: ReleaseSettings = ReleaseSettings()
    images: ImageSettings = ImageSettings()
    fetcher: FetcherSettings = FetcherSettings()
    docs: DocsSettings = DocsSettings()
    apis: list[ApiSource] = []
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


def load_settings(config_path: str | None = None) -> Settings:
    """Build Settings, reading an explicit YAML file when one is given.

    The explicit file takes the place of the discovered one, so environment
    variables still override it.
    """
    if config_path is None:
        return Settings()

    class ExplicitFileSettings(Settings):
        model_config = SettingsConfigDict(yaml_file=config_path)

    return ExplicitFileSettings()
