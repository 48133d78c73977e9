from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from cf_config_client.errors import ConfigIOError, ParseError

logger = logging.getLogger(__name__)

# Ordered by priority. Older platform releases publish the hyphenated name.
SERVICE_TYPE_KEYS: tuple[str, ...] = ("p-config-server", "p.config-server")


def _parse_json(raw: str, *, source: str) -> dict[str, Any]:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Malformed service bindings JSON. source={source} error={exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ParseError(f"Service bindings must be a JSON object, got: {type(data).__name__}. source={source}")
    return data


def load_vcap_services(
    vcap_services: Optional[str],
    vcap_local_path: str = "./vcap_services.json",
) -> dict[str, Any]:
    """
    Parse the service bindings registry.

    The raw `VCAP_SERVICES` value wins when it is non-empty. Otherwise the local file is read,
    resolved against the current working directory. A missing file yields an empty registry.
    """
    if vcap_services:
        return _parse_json(vcap_services, source="environment")

    local_path = Path.cwd() / vcap_local_path
    if not local_path.exists():
        logger.debug("Service bindings file not found; using empty registry. path=%s", local_path)
        return {}
    try:
        raw = local_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ParseError(f"Service bindings file is not valid UTF-8. path={local_path}") from exc
    except OSError as exc:
        raise ConfigIOError(f"Failed to read service bindings file: {local_path} error={exc}") from exc
    return _parse_json(raw, source=str(local_path))
