from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional

from cf_config_client.config.models import ClientSettings, LoadParams
from cf_config_client.descriptors import LoaderDescriptor
from cf_config_client.loaders import Loaders
from cf_config_client.refresh import Clock, RefreshDriver, RefreshHandle, Sleep
from cf_config_client.resolver import resolve_descriptor

logger = logging.getLogger(__name__)

Resolver = Callable[..., LoaderDescriptor]


class ConfigStore:
    """
    Holds the most recently loaded configuration for the hosting application.

    Each successful load replaces the whole value; a failed refresh leaves the previous value in place.
    The hosting application owns the instance and should `close()` it on shutdown.
    """

    def __init__(
        self,
        *,
        settings: Optional[ClientSettings] = None,
        loaders: Optional[Loaders] = None,
        resolver: Resolver = resolve_descriptor,
        environ: Optional[Mapping[str, str]] = None,
        sleep: Optional[Sleep] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._settings = settings or ClientSettings()
        self._loaders = loaders or Loaders.default(timeout_seconds=self._settings.http.timeout_seconds)
        self._resolver = resolver
        self._environ = environ
        self._sleep = sleep
        self._clock = clock
        self._current: Any = None
        self._loaded = False
        self._handles: list[RefreshHandle] = []

    @property
    def loaded(self) -> bool:
        return self._loaded

    def current(self) -> Any:
        """Return the most recently loaded configuration, or `None` before the first load."""
        return self._current

    def _deliver(self, config: Any) -> None:
        self._current = config
        self._loaded = True

    async def load(self, params: LoadParams) -> RefreshHandle:
        """
        Resolve the source for `params`, load it once and start auto-refresh when an interval is set.

        Refresh started by an earlier `load` is stopped first, so only one loop ever writes to the store.
        """
        await self.close()
        descriptor = self._resolver(params, settings=self._settings, environ=self._environ)
        driver_kwargs: dict[str, Any] = {"loaders": self._loaders, "sleep": self._sleep}
        if self._clock is not None:
            driver_kwargs["clock"] = self._clock
        driver = RefreshDriver(descriptor, params, self._deliver, **driver_kwargs)
        handle = await driver.start()
        self._handles.append(handle)
        return handle

    async def close(self) -> None:
        handles, self._handles = self._handles, []
        for handle in handles:
            await handle.stop()
        logger.debug("Config store closed. stopped_handles=%s", len(handles))
