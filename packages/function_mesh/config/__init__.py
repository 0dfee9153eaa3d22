"""Public API for function mesh configuration utilities."""

from .defaults import BUILTIN_DEFAULTS, DEFAULT_BASE_PORT, DEFAULT_LOCAL_HOST
from .loader import (
    DEFAULT_CONFIG_PATH,
    ENV_PREFIX,
    PropertySource,
    load_config,
    load_properties,
)
from .models import (
    HttpSettings,
    LoggingSettings,
    MeshSettings,
    SigningSettings,
    load_settings,
)

__all__ = [
    "BUILTIN_DEFAULTS",
    "DEFAULT_BASE_PORT",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_LOCAL_HOST",
    "ENV_PREFIX",
    "HttpSettings",
    "LoggingSettings",
    "MeshSettings",
    "PropertySource",
    "SigningSettings",
    "load_config",
    "load_properties",
    "load_settings",
]
