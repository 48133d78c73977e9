from __future__ import annotations

import logging
import os
from typing import Any, Callable, Mapping, Optional

from cf_config_client.bindings import SERVICE_TYPE_KEYS, load_vcap_services
from cf_config_client.config.models import ClientSettings, LoadParams
from cf_config_client.descriptors import (
    LoaderDescriptor,
    LocalDescriptor,
    RemoteDescriptor,
    RemoteNoAuthDescriptor,
)
from cf_config_client.errors import BindingNotFoundError, ConfigurationError

logger = logging.getLogger(__name__)

VcapLoader = Callable[[Optional[str], str], Mapping[str, Any]]

_CREDENTIAL_FIELDS = ("uri", "access_token_uri", "client_id", "client_secret")


def local_path_for(params: LoadParams) -> str:
    return f"./{params.config_server_name}/{params.app_name}-{params.profile}.yml"


def _find_service_list(vcap_services: Mapping[str, Any]) -> list[Any]:
    for key in SERVICE_TYPE_KEYS:
        if key in vcap_services:
            services = vcap_services[key]
            if not isinstance(services, list):
                raise ConfigurationError(f"Service bindings under '{key}' must be a list.")
            return services
    raise ConfigurationError(
        "No config server bindings found. Expected one of the service types: "
        + ", ".join(f"'{key}'" for key in SERVICE_TYPE_KEYS)
    )


def _find_binding(services: list[Any], server_name: str) -> Mapping[str, Any]:
    for entry in services:
        if isinstance(entry, Mapping) and entry.get("name") == server_name:
            return entry
    raise BindingNotFoundError(f"No config server binding named '{server_name}'.")


def _remote_descriptor(params: LoadParams, binding: Mapping[str, Any]) -> RemoteDescriptor:
    credentials = binding.get("credentials")
    if not isinstance(credentials, Mapping):
        raise ConfigurationError(f"Config server binding '{params.config_server_name}' has no credentials.")
    missing = [name for name in _CREDENTIAL_FIELDS if not credentials.get(name)]
    if missing:
        raise ConfigurationError(
            f"Config server binding '{params.config_server_name}' is missing credentials: {', '.join(missing)}"
        )
    return RemoteDescriptor(
        app_name=params.app_name,
        profile=params.profile,
        uri=credentials["uri"],
        access_token_uri=credentials["access_token_uri"],
        client_id=credentials["client_id"],
        client_secret=credentials["client_secret"],
    )


def resolve_descriptor(
    params: LoadParams,
    *,
    settings: Optional[ClientSettings] = None,
    environ: Optional[Mapping[str, str]] = None,
    vcap_loader: VcapLoader = load_vcap_services,
) -> LoaderDescriptor:
    """
    Decide where configuration comes from and build the matching loader descriptor.

    Environment and the bindings file are re-read on every call.
    """
    settings = settings or ClientSettings()
    env = os.environ if environ is None else environ
    bindings = settings.bindings

    if params.config_location == "local":
        return LocalDescriptor(path=local_path_for(params))

    if params.config_location == "remote":
        vcap_services = vcap_loader(env.get(bindings.vcap_services_env), bindings.vcap_local_path)
        services = _find_service_list(vcap_services)
        binding = _find_binding(services, params.config_server_name)
        logger.debug("Resolved config server binding. name=%s", params.config_server_name)
        return _remote_descriptor(params, binding)

    if params.config_location == "remote-no-auth":
        uri = env.get(bindings.skip_auth_uri_env)
        if not uri:
            raise ConfigurationError(f"Environment variable {bindings.skip_auth_uri_env} is not set.")
        return RemoteNoAuthDescriptor(app_name=params.app_name, profile=params.profile, uri=uri)

    raise ConfigurationError(f"Unsupported config location: {params.config_location}")
