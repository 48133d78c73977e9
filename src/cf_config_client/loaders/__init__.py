"""Configuration loaders, one per loader descriptor variant."""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Any, Awaitable, Callable

from cf_config_client.descriptors import (
    LoaderDescriptor,
    LocalDescriptor,
    RemoteDescriptor,
    RemoteNoAuthDescriptor,
)
from cf_config_client.loaders.local import load_local
from cf_config_client.loaders.remote import fetch_access_token, load_remote, load_remote_no_auth


@dataclass(frozen=True, slots=True)
class Loaders:
    local: Callable[[LocalDescriptor], Awaitable[Any]]
    remote: Callable[[RemoteDescriptor], Awaitable[Any]]
    remote_no_auth: Callable[[RemoteNoAuthDescriptor], Awaitable[Any]]

    @classmethod
    def default(cls, *, timeout_seconds: float = 30) -> "Loaders":
        return cls(
            local=load_local,
            remote=partial(load_remote, timeout_seconds=timeout_seconds),
            remote_no_auth=partial(load_remote_no_auth, timeout_seconds=timeout_seconds),
        )


async def load_descriptor(descriptor: LoaderDescriptor, loaders: Loaders) -> Any:
    if isinstance(descriptor, LocalDescriptor):
        return await loaders.local(descriptor)
    if isinstance(descriptor, RemoteDescriptor):
        return await loaders.remote(descriptor)
    if isinstance(descriptor, RemoteNoAuthDescriptor):
        return await loaders.remote_no_auth(descriptor)
    raise TypeError(f"Unsupported loader descriptor: {type(descriptor).__name__}")


__all__ = [
    "Loaders",
    "fetch_access_token",
    "load_descriptor",
    "load_local",
    "load_remote",
    "load_remote_no_auth",
]
