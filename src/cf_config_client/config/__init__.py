"""Client settings and load parameters."""

from cf_config_client.config.loader import YamlSettingsLoader
from cf_config_client.config.models import (
    BindingSettings,
    ClientSettings,
    ConfigLocation,
    HttpSettings,
    LoadParams,
    LoggingSettings,
    SettingsLoadRequest,
)

__all__ = [
    "BindingSettings",
    "ClientSettings",
    "ConfigLocation",
    "HttpSettings",
    "LoadParams",
    "LoggingSettings",
    "SettingsLoadRequest",
    "YamlSettingsLoader",
]
