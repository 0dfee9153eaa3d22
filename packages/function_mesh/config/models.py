"""Typed configuration models for function mesh runtime settings."""

from __future__ import annotations

from pathlib import Path
from typing import ClassVar, Literal

from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from .loader import DEFAULT_CONFIG_PATH


class LoggingSettings(BaseModel):
    """Structured logging configuration for mesh-enabled processes."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_output: bool = True
    service: str = "function-mesh"
    environment: str = "dev"


class HttpSettings(BaseModel):
    """Outbound HTTP transport settings shared by all capability stubs."""

    timeout_seconds: float = Field(default=10.0, gt=0)
    follow_redirects: bool = False


class SigningSettings(BaseModel):
    """SigV4 request-signing scope used for ``SIGNED`` endpoints."""

    service_name: str = "lambda"
    default_region: str = "us-east-1"


class MeshSettings(BaseSettings):
    """Root runtime settings resolved from init/env/yaml/defaults sources."""

    model_config = SettingsConfigDict(
        env_prefix="FUNCTION_MESH_",
        env_nested_delimiter="__",
        extra="ignore",
        nested_model_default_partial_update=True,
    )

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    signing: SigningSettings = Field(default_factory=SigningSettings)

    _config_path: ClassVar[Path] = DEFAULT_CONFIG_PATH

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Apply mesh precedence: init > env > yaml > model defaults."""
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(
                settings_cls,
                yaml_file=cls._config_path,
                yaml_file_encoding="utf-8",
            ),
        )


def load_settings(
    *, config_path: str | Path | None = None, **overrides: object
) -> MeshSettings:
    """Load typed mesh settings, reading YAML from ``config_path`` when given."""
    if config_path is None:
        return MeshSettings(**overrides)

    resolved = Path(config_path)

    class _FileBoundMeshSettings(MeshSettings):
        _config_path: ClassVar[Path] = resolved

    return _FileBoundMeshSettings(**overrides)
