from __future__ import annotations

import asyncio
import inspect
import logging
import time
from typing import Any, Awaitable, Callable, Optional, Union

import yaml

from cf_config_client.config.models import LoadParams
from cf_config_client.descriptors import LoaderDescriptor, describe_source
from cf_config_client.loaders import Loaders, load_descriptor

logger = logging.getLogger(__name__)

Sink = Callable[[Any], Union[None, Awaitable[None]]]
Sleep = Callable[[float], Awaitable[None]]
Clock = Callable[[], float]


def _format_properties(config: Any) -> str:
    try:
        return yaml.safe_dump(config, sort_keys=False, default_flow_style=True, width=float("inf")).strip()
    except yaml.YAMLError:
        # values injected by custom loaders are not always YAML-representable
        return repr(config)


class RefreshHandle:
    """Controls the auto-refresh loop started by `RefreshDriver.start`."""

    def __init__(self, task: Optional[asyncio.Task] = None) -> None:
        self._task = task

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def stop(self) -> None:
        task = self._task
        if task is None:
            return
        self._task = None
        if not task.done():
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            logger.debug("Config refresh loop cancelled.")


class RefreshDriver:
    """
    Loads configuration from one descriptor and hands every successful result to `sink`.

    The initial load runs inside `start` and propagates its errors. When `params.interval` is positive,
    a single background task then reloads every `interval` seconds. Reloads run strictly one after
    another; a failed reload is logged and the sink is not called for it.
    """

    def __init__(
        self,
        descriptor: LoaderDescriptor,
        params: LoadParams,
        sink: Sink,
        *,
        loaders: Optional[Loaders] = None,
        sleep: Optional[Sleep] = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._descriptor = descriptor
        self._params = params
        self._sink = sink
        self._loaders = loaders or Loaders.default()
        self._sleep = sleep or asyncio.sleep
        self._clock = clock

    async def load_once(self) -> Any:
        config = await load_descriptor(self._descriptor, self._loaders)
        logger.info(
            "Loaded configuration. source=%s server=%s app=%s profile=%s",
            describe_source(self._descriptor),
            self._params.config_server_name,
            self._params.app_name,
            self._params.profile,
        )
        if self._params.log_properties:
            logger.info(
                "Configuration properties. app=%s profile=%s properties=%s",
                self._params.app_name,
                self._params.profile,
                _format_properties(config),
            )

        result = self._sink(config)
        if inspect.isawaitable(result):
            await result
        return config

    async def start(self) -> RefreshHandle:
        started = self._clock()
        await self.load_once()
        if not self._params.refresh_enabled:
            return RefreshHandle()

        logger.info(
            "Starting config auto-refresh. app=%s profile=%s interval_seconds=%s",
            self._params.app_name,
            self._params.profile,
            self._params.interval,
        )
        task = asyncio.create_task(self._refresh_loop(started))
        return RefreshHandle(task)

    async def _refresh_loop(self, last_started: float) -> None:
        interval = float(self._params.interval or 0)
        while True:
            elapsed = self._clock() - last_started
            await self._sleep(max(0.0, interval - elapsed))
            last_started = self._clock()
            try:
                await self.load_once()
            except Exception as exc:
                logger.error(
                    "Config refresh failed; keeping previous configuration. source=%s app=%s profile=%s error=%s",
                    describe_source(self._descriptor),
                    self._params.app_name,
                    self._params.profile,
                    exc,
                )
