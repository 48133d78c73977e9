from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Any

import yaml

from cf_config_client.config import LoadParams, SettingsLoadRequest, YamlSettingsLoader
from cf_config_client.config.models import ClientSettings
from cf_config_client.errors import ConfigClientError
from cf_config_client.loaders import Loaders
from cf_config_client.logging import init_logging
from cf_config_client.refresh import RefreshDriver
from cf_config_client.resolver import resolve_descriptor
from cf_config_client.store import ConfigStore

logger = logging.getLogger(__name__)


def _add_load_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("app_name", help="Application name")
    parser.add_argument("profile", help="Deployment profile, e.g. dev or prod")
    parser.add_argument("config_server_name", help="Config server binding name (also the local directory name)")
    parser.add_argument(
        "--location",
        choices=["local", "remote", "remote-no-auth"],
        default="local",
        help="Where to load configuration from (default: local)",
    )
    parser.add_argument(
        "--log-properties",
        action="store_true",
        help="Log the full loaded configuration.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cf-config-client", description="Load application configuration")
    parser.add_argument(
        "--settings",
        default=None,
        help="Path to a client settings YAML file (default: built-in defaults)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to run")

    # Command: show
    show_parser = subparsers.add_parser("show", help="Load configuration once and print it as YAML")
    _add_load_arguments(show_parser)

    # Command: watch
    watch_parser = subparsers.add_parser("watch", help="Load configuration and print every refresh")
    _add_load_arguments(watch_parser)
    watch_parser.add_argument(
        "--interval",
        type=float,
        required=True,
        help="Refresh interval in seconds.",
    )
    watch_parser.add_argument(
        "--run-seconds",
        type=float,
        default=None,
        help="Stop after N seconds (useful for smoke testing).",
    )

    return parser


def _load_params(args: argparse.Namespace) -> LoadParams:
    return LoadParams(
        app_name=args.app_name,
        profile=args.profile,
        config_server_name=args.config_server_name,
        config_location=args.location,
        log_properties=args.log_properties,
        interval=getattr(args, "interval", None),
    )


def _print_config(config: Any) -> None:
    sys.stdout.write(yaml.safe_dump(config, sort_keys=False, default_flow_style=False))
    sys.stdout.write("---\n")
    sys.stdout.flush()


async def _load_settings(args: argparse.Namespace) -> ClientSettings:
    loader = YamlSettingsLoader()
    return await loader.load(SettingsLoadRequest(yaml_path=args.settings))


async def _show(args: argparse.Namespace, settings: ClientSettings) -> None:
    store = ConfigStore(settings=settings)
    try:
        await store.load(_load_params(args))
        _print_config(store.current())
    finally:
        await store.close()


async def _watch(args: argparse.Namespace, settings: ClientSettings) -> None:
    params = _load_params(args)
    descriptor = resolve_descriptor(params, settings=settings)
    driver = RefreshDriver(
        descriptor,
        params,
        _print_config,
        loaders=Loaders.default(timeout_seconds=settings.http.timeout_seconds),
    )
    handle = await driver.start()
    try:
        if args.run_seconds is not None:
            await asyncio.sleep(args.run_seconds)
        else:
            await asyncio.Event().wait()
    finally:
        await handle.stop()


async def _main_async() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    settings = await _load_settings(args)
    init_logging(settings.logging)

    if args.command == "show":
        await _show(args, settings)
    elif args.command == "watch":
        await _watch(args, settings)


def main() -> None:
    try:
        asyncio.run(_main_async())
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")
    except ConfigClientError as exc:
        logger.error("Failed to load configuration. error=%s", exc)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
