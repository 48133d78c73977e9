from __future__ import annotations

import asyncio
import logging
import os

from cf_config_client import ConfigStore, LoadParams
from cf_config_client.config.models import LoggingSettings
from cf_config_client.logging import init_logging


async def main() -> None:
    init_logging(LoggingSettings(level="INFO"))
    os.environ.setdefault("ORDERS_DB_PASSWORD", "smoke-password")

    store = ConfigStore()
    await store.load(
        LoadParams(
            app_name="orders",
            profile="dev",
            config_server_name="examples/config-repo",
            config_location="local",
            log_properties=True,
        )
    )

    logger = logging.getLogger("smoke")
    logger.info("Config loaded page_size=%s", store.current()["orders"]["page_size"])
    await store.close()


if __name__ == "__main__":
    asyncio.run(main())
