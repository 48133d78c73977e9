from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from cf_config_client.descriptors import LocalDescriptor
from cf_config_client.errors import ConfigIOError
from cf_config_client.loaders.yaml_schema import parse_yaml

logger = logging.getLogger(__name__)


async def load_local(descriptor: LocalDescriptor) -> Any:
    """Read a YAML file relative to the current working directory, resolving `!env` tags."""
    path = Path.cwd() / descriptor.path
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigIOError(f"Config file not found: {path}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigIOError(f"Failed to read config file: {path} error={exc}") from exc

    logger.debug("Read local config file. path=%s chars=%s", path, len(text))
    return parse_yaml(text, source=str(path), with_env=True)
