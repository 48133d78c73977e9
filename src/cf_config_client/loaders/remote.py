from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import aiohttp

from cf_config_client.descriptors import RemoteDescriptor, RemoteNoAuthDescriptor, config_url
from cf_config_client.errors import AuthError, FetchError
from cf_config_client.loaders.yaml_schema import parse_yaml

logger = logging.getLogger(__name__)

_TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (
    aiohttp.ClientError,
    asyncio.TimeoutError,
)


@asynccontextmanager
async def _session_scope(
    session: Optional[aiohttp.ClientSession],
    timeout_seconds: float,
) -> AsyncIterator[aiohttp.ClientSession]:
    if session is not None:
        yield session
        return
    timeout = aiohttp.ClientTimeout(total=timeout_seconds)
    async with aiohttp.ClientSession(timeout=timeout) as owned:
        yield owned


async def fetch_access_token(session: aiohttp.ClientSession, descriptor: RemoteDescriptor) -> str:
    """Exchange client credentials for a bearer token at the descriptor's token endpoint."""
    form = {
        "grant_type": "client_credentials",
        "client_id": descriptor.client_id,
        "client_secret": descriptor.client_secret,
    }
    try:
        async with session.post(descriptor.access_token_uri, data=form) as response:
            status = response.status
            body = await response.text()
    except _TRANSPORT_ERRORS as exc:
        raise AuthError(
            f"Token request failed. url={descriptor.access_token_uri} error={type(exc).__name__}: {exc}"
        ) from exc
    except UnicodeDecodeError as exc:
        raise AuthError(f"Token response could not be decoded. url={descriptor.access_token_uri}") from exc

    if not 200 <= status < 300:
        raise AuthError(f"Token request rejected. url={descriptor.access_token_uri} status={status}")

    try:
        payload = json.loads(body)
    except json.JSONDecodeError as exc:
        raise AuthError(f"Token response is not valid JSON. url={descriptor.access_token_uri}") from exc

    token = payload.get("access_token") if isinstance(payload, dict) else None
    if not isinstance(token, str) or not token:
        raise AuthError(f"Token response has no access_token. url={descriptor.access_token_uri}")
    return token


async def _fetch_yaml_text(
    session: aiohttp.ClientSession,
    url: str,
    *,
    headers: Optional[dict[str, str]] = None,
) -> str:
    try:
        async with session.get(url, headers=headers) as response:
            status = response.status
            text = await response.text()
    except _TRANSPORT_ERRORS as exc:
        raise FetchError(f"Config request failed. url={url} error={type(exc).__name__}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise FetchError(f"Config response could not be decoded. url={url}") from exc

    if not 200 <= status < 300:
        raise FetchError(f"Config request rejected. url={url} status={status}")
    logger.debug("Fetched remote config. url=%s chars=%s", url, len(text))
    return text


async def load_remote(
    descriptor: RemoteDescriptor,
    *,
    session: Optional[aiohttp.ClientSession] = None,
    timeout_seconds: float = 30,
) -> Any:
    """
    Authenticate with OAuth2 client credentials, then fetch and parse `{uri}/{app}-{profile}.yml`.

    `!env` tags are not resolved on this path: remote files are expected to be resolved server-side.
    A caller-provided session is left open.
    """
    url = config_url(descriptor)
    async with _session_scope(session, timeout_seconds) as active:
        token = await fetch_access_token(active, descriptor)
        text = await _fetch_yaml_text(active, url, headers={"authorization": f"bearer {token}"})
    return parse_yaml(text, source=url)


async def load_remote_no_auth(
    descriptor: RemoteNoAuthDescriptor,
    *,
    session: Optional[aiohttp.ClientSession] = None,
    timeout_seconds: float = 30,
) -> Any:
    url = config_url(descriptor)
    async with _session_scope(session, timeout_seconds) as active:
        text = await _fetch_yaml_text(active, url)
    return parse_yaml(text, source=url)
