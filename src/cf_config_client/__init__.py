"""Configuration client for local YAML files and OAuth2-protected config servers."""

from cf_config_client.config.models import ClientSettings, LoadParams
from cf_config_client.descriptors import (
    LoaderDescriptor,
    LocalDescriptor,
    RemoteDescriptor,
    RemoteNoAuthDescriptor,
)
from cf_config_client.errors import (
    AuthError,
    BindingNotFoundError,
    ConfigClientError,
    ConfigIOError,
    ConfigurationError,
    FetchError,
    ParseError,
)
from cf_config_client.refresh import RefreshDriver, RefreshHandle
from cf_config_client.resolver import resolve_descriptor
from cf_config_client.store import ConfigStore

__all__ = [
    "AuthError",
    "BindingNotFoundError",
    "ClientSettings",
    "ConfigClientError",
    "ConfigIOError",
    "ConfigStore",
    "ConfigurationError",
    "FetchError",
    "LoadParams",
    "LoaderDescriptor",
    "LocalDescriptor",
    "ParseError",
    "RefreshDriver",
    "RefreshHandle",
    "RemoteDescriptor",
    "RemoteNoAuthDescriptor",
    "resolve_descriptor",
]
