from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union

SourceName = Literal["local", "remote", "remote-no-auth"]


@dataclass(frozen=True, slots=True)
class LocalDescriptor:
    path: str


@dataclass(frozen=True, slots=True)
class RemoteDescriptor:
    app_name: str
    profile: str
    uri: str
    access_token_uri: str
    client_id: str
    client_secret: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class RemoteNoAuthDescriptor:
    app_name: str
    profile: str
    uri: str


LoaderDescriptor = Union[LocalDescriptor, RemoteDescriptor, RemoteNoAuthDescriptor]


def config_url(descriptor: RemoteDescriptor | RemoteNoAuthDescriptor) -> str:
    """Return the config server URL of the YAML resource for the descriptor's app and profile."""
    base = descriptor.uri.rstrip("/")
    return f"{base}/{descriptor.app_name}-{descriptor.profile}.yml"


def describe_source(descriptor: LoaderDescriptor) -> SourceName:
    if isinstance(descriptor, LocalDescriptor):
        return "local"
    if isinstance(descriptor, RemoteDescriptor):
        return "remote"
    if isinstance(descriptor, RemoteNoAuthDescriptor):
        return "remote-no-auth"
    raise TypeError(f"Unsupported loader descriptor: {type(descriptor).__name__}")
